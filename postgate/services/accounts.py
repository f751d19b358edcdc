#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Account service - registration, email verification, login and the account
lifecycle.

    register ──> UNVERIFIED ──redeem token──> VERIFIED
                     ^                           │
                     └─────── email change ──────┘
    UNVERIFIED | VERIFIED ──delete (self or admin)──> DELETED (row removed)

Role is orthogonal to the verification state and only changes through the
admin path (``set_role``).
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import secrets
from functools import lru_cache

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postgate.core.authz import RoleAtLeast, owner_or_admin, require
from postgate.core.config import Settings
from postgate.core.errors import (
    AccountUnavailable, Conflict, Forbidden, InvalidCredentials, NotFound, NotVerified,
    ValidationError,
)
from postgate.core.identity import Role, SessionIdentity
from postgate.core.security import TokenCodec, hash_password, verify_password
from postgate.models import Account, AccountState, Post, VerificationToken
from postgate.schemas import AccountCreate, AccountUpdate
from postgate.services.email import VerificationMailer, deliver_verification
from postgate.services.verification import VerificationTokenStore

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

# Checked against when the email is unknown so a missing account costs the
# same bcrypt work as a wrong password.
@lru_cache
def _dummy_hash(rounds: int) -> str:
    return hash_password(secrets.token_urlsafe(16), rounds)


# -----------------------------------------------------------------------------

def normalize_email(email: str) -> str:
    return str(email).strip().lower()


# -----------------------------------------------------------------------------

async def get_account(db: AsyncSession, account_id: str) -> Account:
    account = await db.get(Account, account_id)
    if not account:
        raise NotFound("Account not found")
    return account


# -----------------------------------------------------------------------------

async def get_account_by_email(db: AsyncSession, email: str) -> Account | None:
    result = await db.execute(select(Account).where(Account.email == normalize_email(email)))
    return result.scalar_one_or_none()


# -----------------------------------------------------------------------------

async def _ensure_email_free(db: AsyncSession, email: str, exclude_id: str | None = None) -> None:
    stmt = select(func.count()).select_from(Account).where(Account.email == email)
    if exclude_id:
        stmt = stmt.where(Account.id != exclude_id)
    if (await db.execute(stmt)).scalar_one():
        raise Conflict("An account with this email already exists")


# -----------------------------------------------------------------------------

async def register_account(
    db: AsyncSession,
    data: AccountCreate,
    settings: Settings,
    mailer: VerificationMailer,
) -> tuple[Account, list[str]]:
    if not settings.allow_registration:
        raise Forbidden("Public registration is disabled")

    email = normalize_email(data.email)
    await _ensure_email_free(db, email)

    password_hash = await run_in_threadpool(hash_password, data.password, settings.bcrypt_rounds)
    account = Account(
        name=data.name,
        email=email,
        password_hash=password_hash,
        role=Role.USER,
        email_verified=False,
    )
    db.add(account)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict("An account with this email already exists") from exc

    token = await VerificationTokenStore.from_settings(db, settings).issue(account.id)
    log.info("Registered account %s", account.id)
    # The token must be durable before its link goes out.
    await db.commit()
    warnings = await deliver_verification(mailer, settings, account.email, token)
    return account, warnings


# -----------------------------------------------------------------------------

async def verify_email(db: AsyncSession, token: str, settings: Settings) -> Account:
    account_id = await VerificationTokenStore.from_settings(db, settings).redeem(token)
    account = await get_account(db, account_id)
    if account.state is AccountState.UNVERIFIED:
        account.email_verified = True
        await db.flush()
        await db.refresh(account)
        log.info("Verified email for account %s", account.id)
    return account


# -----------------------------------------------------------------------------

async def resend_verification(
    db: AsyncSession,
    identity: SessionIdentity,
    settings: Settings,
    mailer: VerificationMailer,
) -> list[str]:
    account = await get_account(db, identity.account_id)
    if account.state is AccountState.VERIFIED:
        raise ValidationError("Email address is already verified")
    token = await VerificationTokenStore.from_settings(db, settings).issue(account.id)
    await db.commit()
    return await deliver_verification(mailer, settings, account.email, token)


# -----------------------------------------------------------------------------

async def authenticate(db: AsyncSession, email: str, password: str, rounds: int = 12) -> Account:
    account = await get_account_by_email(db, email)
    if account is None:
        await run_in_threadpool(verify_password, password, _dummy_hash(rounds))
        log.info("Login failed: unknown email")
        raise InvalidCredentials()

    if not await run_in_threadpool(verify_password, password, account.password_hash):
        log.info("Login failed: wrong password for account %s", account.id)
        raise InvalidCredentials()

    if account.state is not AccountState.VERIFIED:
        log.info("Login refused: account %s is not verified", account.id)
        raise NotVerified()
    return account


# -----------------------------------------------------------------------------

async def login(
    db: AsyncSession, email: str, password: str, codec: TokenCodec, settings: Settings,
) -> tuple[str, SessionIdentity, Account]:
    account = await authenticate(db, email, password, rounds=settings.bcrypt_rounds)
    token = codec.issue(account.id, account.role)
    identity = codec.validate(token)
    log.info("Account %s logged in", account.id)
    return token, identity, account


# -----------------------------------------------------------------------------

async def change_password(
    db: AsyncSession,
    identity: SessionIdentity,
    old_password: str,
    new_password: str,
    settings: Settings,
) -> Account:
    account = await get_account(db, identity.account_id)

    if not await run_in_threadpool(verify_password, old_password, account.password_hash):
        raise InvalidCredentials("Current password is incorrect")
    if old_password == new_password:
        raise ValidationError("New password must be different from current password")

    account.password_hash = await run_in_threadpool(hash_password, new_password, settings.bcrypt_rounds)
    await db.flush()
    await db.refresh(account)
    log.info("Password changed for account %s", account.id)
    return account


# -----------------------------------------------------------------------------

async def update_profile(
    db: AsyncSession,
    identity: SessionIdentity,
    data: AccountUpdate,
    settings: Settings,
    mailer: VerificationMailer,
) -> tuple[Account, list[str]]:
    account = await get_account(db, identity.account_id)

    if data.name is not None:
        account.name = data.name

    new_email = normalize_email(data.email) if data.email is not None else None
    email_changed = new_email is not None and new_email != account.email
    if email_changed:
        await _ensure_email_free(db, new_email, exclude_id=account.id)
        account.email = new_email
        account.email_verified = False

    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict("An account with this email already exists") from exc
    await db.refresh(account)

    warnings: list[str] = []
    if email_changed:
        token = await VerificationTokenStore.from_settings(db, settings).issue(account.id)
        log.info("Email changed for account %s; verification required again", account.id)
        await db.commit()
        warnings = await deliver_verification(mailer, settings, account.email, token)
    return account, warnings


# -----------------------------------------------------------------------------

async def delete_account(db: AsyncSession, identity: SessionIdentity, target_id: str) -> None:
    require(identity, owner_or_admin(target_id), "You may only delete your own account")
    if target_id != identity.account_id:
        # Acting on another account needs a verified caller; self-deletion does not.
        caller = await get_account(db, identity.account_id)
        if not caller.email_verified:
            raise AccountUnavailable("Email address has not been verified")
    account = await get_account(db, target_id)

    await db.execute(delete(Post).where(Post.author_id == account.id))
    await db.execute(delete(VerificationToken).where(VerificationToken.account_id == account.id))
    await db.delete(account)
    await db.flush()
    log.info("Account %s deleted by %s", target_id, identity.account_id)


# -----------------------------------------------------------------------------

async def list_accounts(
    db: AsyncSession, identity: SessionIdentity, skip: int = 0, limit: int = 100,
) -> list[Account]:
    require(identity, RoleAtLeast(Role.ADMIN), "Admin access required")
    result = await db.execute(
        select(Account).order_by(Account.created_at, Account.email).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def set_role(
    db: AsyncSession, identity: SessionIdentity, target_id: str, role: Role,
) -> Account:
    require(identity, RoleAtLeast(Role.ADMIN), "Admin access required")
    if target_id == identity.account_id:
        raise ValidationError("Cannot change your own role")
    account = await get_account(db, target_id)
    account.role = role
    await db.flush()
    await db.refresh(account)
    log.info("Account %s role set to %s by %s", target_id, role.value, identity.account_id)
    return account


# -----------------------------------------------------------------------------

async def create_admin(
    db: AsyncSession, name: str, email: str, password: str, settings: Settings,
) -> Account:
    """Bootstrap an already-verified ADMIN account (used by scripts/create_admin.py)."""
    email = normalize_email(email)
    await _ensure_email_free(db, email)
    account = Account(
        name=name,
        email=email,
        password_hash=hash_password(password, settings.bcrypt_rounds),
        role=Role.ADMIN,
        email_verified=True,
    )
    db.add(account)
    await db.flush()
    return account


# -----------------------------------------------------------------------------
