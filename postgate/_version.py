"""Package version: installed distribution metadata, else the source tree's pyproject.toml."""
from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _from_pyproject() -> str:
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    try:
        match = re.search(r'^version\s*=\s*"([^"]+)"', pyproject.read_text(), re.MULTILINE)
    except OSError:
        return "0.0.0"
    return match.group(1) if match else "0.0.0"


try:
    __version__: str = version("postgate")
except PackageNotFoundError:
    __version__ = _from_pyproject()
