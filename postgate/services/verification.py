#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Verification token store - issue and redeem single-use email verification
tokens.

Redemption is one conditional UPDATE (consumed = false AND not expired);
whichever request's UPDATE matches the row wins, so concurrent redemptions
of the same token produce exactly one success without application locks.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from postgate.core.config import Settings
from postgate.core.errors import AppError, Conflict, NotFound, ValidationError
from postgate.models import VerificationToken, as_utc, utcnow

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class VerifyError(AppError):
    """A verification token could not be redeemed."""


class VerificationTokenNotFound(VerifyError, NotFound):
    default_message = "Invalid verification link"


class VerificationTokenConsumed(VerifyError, Conflict):
    default_message = "Verification link has already been used"


class VerificationTokenExpired(VerifyError, ValidationError):
    default_message = "Verification link has expired"


# -----------------------------------------------------------------------------

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# -----------------------------------------------------------------------------

class VerificationTokenStore:

    def __init__(self, db: AsyncSession, ttl: timedelta = timedelta(hours=24)):
        self.db = db
        self.ttl = ttl

    @classmethod
    def from_settings(cls, db: AsyncSession, settings: Settings) -> "VerificationTokenStore":
        return cls(db, ttl=timedelta(hours=settings.verification_token_expire_hours))

    # -------------------------------------------------------------------------

    async def issue(self, account_id: str) -> str:
        """Create a fresh token for ``account_id``; any earlier token stops working."""
        await self.db.execute(
            delete(VerificationToken).where(VerificationToken.account_id == account_id)
        )
        token = secrets.token_urlsafe(32)
        self.db.add(VerificationToken(
            token_hash=hash_token(token),
            account_id=account_id,
            expires_at=utcnow() + self.ttl,
        ))
        await self.db.flush()
        log.info("Issued verification token for account %s", account_id)
        return token

    # -------------------------------------------------------------------------

    async def redeem(self, token: str) -> str:
        """Consume ``token`` and return the owning account id."""
        token_hash = hash_token(token)
        now = utcnow()

        result = await self.db.execute(
            update(VerificationToken)
            .where(
                VerificationToken.token_hash == token_hash,
                VerificationToken.consumed.is_(False),
                VerificationToken.expires_at > now,
            )
            .values(consumed=True, consumed_at=now)
            .execution_options(synchronize_session=False)
        )

        row = (await self.db.execute(
            select(VerificationToken.account_id, VerificationToken.consumed, VerificationToken.expires_at)
            .where(VerificationToken.token_hash == token_hash)
        )).one_or_none()

        if result.rowcount == 1 and row is not None:
            return row.account_id

        if row is None:
            raise VerificationTokenNotFound()
        if row.consumed:
            raise VerificationTokenConsumed()
        if as_utc(row.expires_at) <= now:
            raise VerificationTokenExpired()
        raise VerificationTokenConsumed()


# -----------------------------------------------------------------------------
