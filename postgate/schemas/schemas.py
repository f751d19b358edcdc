#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from postgate.core.identity import Role
from postgate.core.security import BCRYPT_MAX_BYTES


# -----------------------------------------------------------------------------

def check_password_strength(v: str) -> str:
    """At least 8 characters with upper, lower, digit and a special character."""
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    if not (
        any(c.isupper() for c in v)
        and any(c.islower() for c in v)
        and any(c.isdigit() for c in v)
        and any(not c.isalnum() for c in v)
    ):
        raise ValueError(
            "Password must mix upper and lower case letters, digits and special characters"
        )
    return v


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name cannot be empty")
    return v


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Shared
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class OKResponse(BaseModel):
    ok: bool = True
    message: str = "success"


class ErrorResponse(BaseModel):
    status: int
    message: str


# OpenAPI entries for the error statuses every router can return.
ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 500)
}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Accounts
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class AccountCreate(BaseModel):
    name: str = Field(..., max_length=100)
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


# -----------------------------------------------------------------------------

class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        return _clean_name(v) if v is not None else None


# -----------------------------------------------------------------------------

class PasswordChange(BaseModel):
    old_password: str = Field(..., min_length=1, max_length=256)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def strong_new_password(cls, v: str) -> str:
        return check_password_strength(v)


# -----------------------------------------------------------------------------

class RoleUpdate(BaseModel):
    role: Role


# -----------------------------------------------------------------------------

class AccountResponse(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    email_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# -----------------------------------------------------------------------------

class AccountChangeResponse(BaseModel):
    """Account after register / profile update, plus non-fatal mail warnings."""
    account: AccountResponse
    warnings: list[str] = []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Auth
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)


# -----------------------------------------------------------------------------

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int   # seconds
    account: AccountResponse


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Posts
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PostCreate(BaseModel):
    title: str = Field(..., max_length=255)
    content: str = Field(..., max_length=100_000)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title and content cannot be empty")
        return v


# -----------------------------------------------------------------------------

class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = Field(None, max_length=100_000)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Title and content cannot be empty")
        return v


# -----------------------------------------------------------------------------

class AuthorSummary(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    id: str
    title: str
    content: str
    author: AuthorSummary
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
