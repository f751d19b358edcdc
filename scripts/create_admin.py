#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Bootstrap an administrator account.

Roles are never self-assigned through the API, so the first ADMIN has to be
created here.  The account is stored already verified.

Usage (from project root):
    python scripts/create_admin.py --email admin@example.com --name "Site Admin"

The password is prompted for unless --password is given.  DATABASE_URL and
the other settings come from the environment / .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from postgate.core.config import get_settings
from postgate.core.database import create_all_tables, dispose_db, init_db, session_scope
from postgate.core.errors import AppError
from postgate.schemas import check_password_strength
from postgate.services.accounts import create_admin


# -----------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a verified ADMIN account")
    parser.add_argument("--email", required=True, help="Login email of the new admin")
    parser.add_argument("--name", default="Administrator", help="Display name")
    parser.add_argument("--password", help="Password (prompted for when omitted)")
    return parser.parse_args(argv)


# -----------------------------------------------------------------------------

async def run(args: argparse.Namespace, password: str) -> int:
    settings = get_settings()
    print("DATABASE_URL:", settings.database_url)

    init_db()
    try:
        await create_all_tables()
        async with session_scope() as db:
            account = await create_admin(db, args.name, args.email, password, settings)
        print(f"  id={account.id} email={account.email} role={account.role.value}")
    except AppError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 1
    finally:
        await dispose_db()
    return 0


# -----------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    password = args.password or getpass.getpass("Password: ")
    try:
        check_password_strength(password)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return asyncio.run(run(args, password))


# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
