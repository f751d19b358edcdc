#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Auth router
===========
POST   /api/v1/auth/register             - create account (unverified)
GET    /api/v1/auth/verify-email?token=  - redeem verification link
POST   /api/v1/auth/login                - JWT in body + auth-token cookie
POST   /api/v1/auth/logout               - clear the auth cookie
GET    /api/v1/auth/me                   - current account        [auth]
PATCH  /api/v1/auth/me                   - update name / email    [auth]
PUT    /api/v1/auth/change-password      - change password        [auth]
POST   /api/v1/auth/resend-verification  - new verification link  [auth]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from postgate.core.auth import get_identity_allow_unverified
from postgate.core.config import Settings, get_settings
from postgate.core.database import get_db
from postgate.core.identity import SessionIdentity
from postgate.core.security import TokenCodec, get_token_codec
from postgate.schemas import (
    AccountChangeResponse, AccountCreate, AccountResponse, AccountUpdate,
    LoginRequest, OKResponse, PasswordChange, TokenResponse,
)
from postgate.services import accounts as account_svc
from postgate.services.email import VerificationMailer, get_mailer

# -----------------------------------------------------------------------------

router = APIRouter(prefix="/auth", tags=["auth"])


# -----------------------------------------------------------------------------

def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.access_token_ttl_seconds,
        path="/",
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path="/",
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )


# ── Registration / verification ───────────────────────────────────────────────

@router.post("/register", response_model=AccountChangeResponse, status_code=201)
async def register(
    data: AccountCreate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: VerificationMailer = Depends(get_mailer),
):
    account, warnings = await account_svc.register_account(db, data, settings, mailer)
    return {"account": account, "warnings": warnings}


# -----------------------------------------------------------------------------

@router.get("/verify-email", response_model=AccountResponse)
async def verify_email(
    token: str = Query(..., min_length=1, max_length=256),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await account_svc.verify_email(db, token, settings)


# -----------------------------------------------------------------------------

@router.post("/resend-verification", response_model=AccountChangeResponse)
async def resend_verification(
    identity: SessionIdentity = Depends(get_identity_allow_unverified),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: VerificationMailer = Depends(get_mailer),
):
    warnings = await account_svc.resend_verification(db, identity, settings, mailer)
    account = await account_svc.get_account(db, identity.account_id)
    return {"account": account, "warnings": warnings}


# ── Session ──────────────────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
):
    token, _, account = await account_svc.login(db, data.email, data.password, codec, settings)
    set_auth_cookie(response, token, settings)
    return TokenResponse(
        access_token=token,
        expires_in=settings.access_token_ttl_seconds,
        account=AccountResponse.model_validate(account),
    )


# -----------------------------------------------------------------------------

@router.post("/logout", response_model=OKResponse)
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    # Tokens are stateless: this only drops the cookie, an issued JWT stays
    # valid until it expires.
    clear_auth_cookie(response, settings)
    return OKResponse(message="Logged out")


# ── Current account ──────────────────────────────────────────────────────────

@router.get("/me", response_model=AccountResponse)
async def me(
    identity: SessionIdentity = Depends(get_identity_allow_unverified),
    db: AsyncSession = Depends(get_db),
):
    return await account_svc.get_account(db, identity.account_id)


# -----------------------------------------------------------------------------

@router.patch("/me", response_model=AccountChangeResponse)
async def update_me(
    data: AccountUpdate,
    identity: SessionIdentity = Depends(get_identity_allow_unverified),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: VerificationMailer = Depends(get_mailer),
):
    account, warnings = await account_svc.update_profile(db, identity, data, settings, mailer)
    return {"account": account, "warnings": warnings}


# -----------------------------------------------------------------------------

@router.put("/change-password", response_model=OKResponse)
async def change_password(
    data: PasswordChange,
    identity: SessionIdentity = Depends(get_identity_allow_unverified),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await account_svc.change_password(db, identity, data.old_password, data.new_password, settings)
    return OKResponse(message="Password has been updated")


# -----------------------------------------------------------------------------
