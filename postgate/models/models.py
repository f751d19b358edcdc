#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
ORM Models for Postgate
=======================

Tables
------
accounts             - user accounts with hashed passwords and a role
verification_tokens  - single-use email verification tokens (hashed)
posts                - blog posts owned by an account

All primary keys are UUIDs.  Timestamps stored in UTC.
Deleting an account removes its tokens and posts.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from postgate.core.database import Base
from postgate.core.identity import Role


# ----------------------------------------------------------------------------

def _uuid_col(primary_key=False, nullable=False, **kw):
    """UUID column stored as String(36) - works for both SQLite and PostgreSQL."""
    return mapped_column(
        String(36),
        primary_key=primary_key,
        nullable=nullable,
        default=lambda: str(uuid.uuid4()),
        **kw,
    )


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ----------------------------------------------------------------------------

class AccountState(enum.Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# accounts
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Account(Base):
    __tablename__ = "accounts"

    id:             Mapped[str]      = _uuid_col(primary_key=True)
    name:           Mapped[str]      = mapped_column(String(100), nullable=False)
    # Always stored lower-cased, so the unique index is case-insensitive.
    email:          Mapped[str]      = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash:  Mapped[str]      = mapped_column(String(255), nullable=False)
    role:           Mapped[Role]     = mapped_column(
        Enum(Role, name="account_role", native_enum=False, length=16),
        default=Role.USER,
        nullable=False,
    )
    email_verified: Mapped[bool]     = mapped_column(Boolean, default=False, nullable=False)
    created_at:     Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at:     Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    posts: Mapped[list["Post"]] = relationship(
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    verification_tokens: Mapped[list["VerificationToken"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def state(self) -> AccountState:
        return AccountState.VERIFIED if self.email_verified else AccountState.UNVERIFIED

    def __repr__(self) -> str:
        return f"<Account id={self.id} email={self.email} role={self.role.value} state={self.state.value}>"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# verification_tokens
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class VerificationToken(Base):
    """
    One row per issued email verification token.  Only the SHA-256 digest of
    the token is stored; the plain value exists only in the emailed link.
    """
    __tablename__ = "verification_tokens"

    id:          Mapped[str]             = _uuid_col(primary_key=True)
    token_hash:  Mapped[str]             = mapped_column(String(64), unique=True, nullable=False, index=True)
    account_id:  Mapped[str]             = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    expires_at:  Mapped[datetime]        = mapped_column(DateTime(timezone=True), nullable=False)
    consumed:    Mapped[bool]            = mapped_column(Boolean, default=False, nullable=False)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at:  Mapped[datetime]        = mapped_column(DateTime(timezone=True), default=utcnow)

    account: Mapped["Account"] = relationship(back_populates="verification_tokens")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# posts
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Post(Base):
    __tablename__ = "posts"

    id:         Mapped[str]      = _uuid_col(primary_key=True)
    title:      Mapped[str]      = mapped_column(String(255), nullable=False)
    content:    Mapped[str]      = mapped_column(Text, nullable=False)
    author_id:  Mapped[str]      = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    author: Mapped["Account"] = relationship(back_populates="posts")
