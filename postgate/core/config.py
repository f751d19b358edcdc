#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
Settings are frozen: they are read once at startup and then passed to the
token codec, the verification store and the mailer.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import secrets
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from postgate._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "Postgate"
    app_version: str = _pkg_version
    base_url: str = "http://localhost:8000"
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: str = "INFO"

    # ── Database ───────────────────────────────────────────────────────────

    database_url: str = "sqlite+aiosqlite:///./postgate.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # ── Auth / JWT ─────────────────────────────────────────────────────────

    # Random per process unless SECRET_KEY is set;
    # tokens then do not survive a restart.
    secret_key: str = Field(default_factory=lambda: secrets.token_urlsafe(64))
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24   # 24 hours
    verification_token_expire_hours: int = 24
    bcrypt_rounds: int = 12

    auth_cookie_name: str = "auth-token"
    auth_cookie_secure: bool = True

    allow_registration: bool = True

    # ── Email ──────────────────────────────────────────────────────────────

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "Postgate <no-reply@localhost>"
    smtp_tls: bool = True
    smtp_ssl: bool = False

    # ── CORS ───────────────────────────────────────────────────────────────

    cors_origins: list[str] = [
        "http://localhost:8000",
        "http://localhost:3000",
    ]

    @property
    def access_token_ttl_seconds(self) -> int:
        return self.access_token_expire_minutes * 60


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
