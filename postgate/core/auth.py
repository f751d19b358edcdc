#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Dual-auth resolver
==================
Turns a request's credential into a ``SessionIdentity``.  A credential may
arrive either as ``Authorization: Bearer <jwt>`` (API clients) or as the
HTTP-only ``auth-token`` cookie (browsers); both are handled identically.

Precedence:
1. A Bearer Authorization header is used exclusively when present.
2. Otherwise the auth cookie is used.
3. Neither → Unauthenticated.

A credential that is present but invalid fails the request; the other
transport is never consulted as a fallback.  After the token checks out the
account is loaded: a deleted account, or an unverified one where
verification is required, is rejected even though the JWT itself is valid.
The role is taken from the stored account, so a role change applies to
tokens already issued.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import replace

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from postgate.models import Account

from .config import Settings, get_settings
from .database import get_db
from .errors import AccountUnavailable, Unauthenticated
from .identity import SessionIdentity
from .security import TokenCodec, TokenError, get_token_codec

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def bearer_token(authorization: str | None) -> str | None:
    """Credentials of a ``Bearer`` Authorization header, or None for other schemes.

    An empty string means the client attempted bearer auth without a token.
    """
    if not authorization:
        return None
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip()


# -----------------------------------------------------------------------------

def select_credential(authorization: str | None, cookie: str | None) -> tuple[str, str] | None:
    """Pick ``(transport, token)`` following header-over-cookie precedence."""
    token = bearer_token(authorization)
    if token is not None:
        return "header", token
    if cookie:
        return "cookie", cookie
    return None


# -----------------------------------------------------------------------------

async def resolve_identity(
    db: AsyncSession,
    codec: TokenCodec,
    authorization: str | None,
    cookie: str | None,
    require_verified: bool = True,
) -> SessionIdentity:
    credential = select_credential(authorization, cookie)
    if credential is None:
        raise Unauthenticated()
    transport, token = credential

    try:
        identity = codec.validate(token)
    except TokenError as exc:
        log.info("Rejected %s credential: %s", transport, type(exc).__name__)
        raise Unauthenticated("Invalid or expired token") from exc

    account = await db.get(Account, identity.account_id)
    if account is None:
        log.info("Rejected token for missing account %s", identity.account_id)
        raise AccountUnavailable("Account no longer exists")
    if require_verified and not account.email_verified:
        raise AccountUnavailable("Email address has not been verified")

    return replace(identity, role=account.role)


# ----------------------------------------------------------------------------
# FastAPI dependencies
# ----------------------------------------------------------------------------

async def _resolve_request(
    request: Request, db: AsyncSession, codec: TokenCodec, settings: Settings, require_verified: bool,
) -> SessionIdentity:
    return await resolve_identity(
        db,
        codec,
        request.headers.get("Authorization"),
        request.cookies.get(settings.auth_cookie_name),
        require_verified=require_verified,
    )


# -----------------------------------------------------------------------------

async def get_identity(
    request: Request,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
) -> SessionIdentity:
    """Authenticated identity of a verified account."""
    return await _resolve_request(request, db, codec, settings, require_verified=True)


# -----------------------------------------------------------------------------

async def get_identity_allow_unverified(
    request: Request,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
) -> SessionIdentity:
    """Authenticated identity; the account may still be awaiting verification."""
    return await _resolve_request(request, db, codec, settings, require_verified=False)


# -----------------------------------------------------------------------------
