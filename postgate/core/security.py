#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
Security utilities
==================
- Password hashing (bcrypt)
- JWT access token issuance / validation (python-jose)

The codec is built from the frozen ``Settings`` and never touches storage:
validating a token is pure and may be repeated freely.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt as _bcrypt_lib
from fastapi import Depends
from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError


# -----------------------------------------------------------------------------

from .config import Settings, get_settings
from .identity import Role, SessionIdentity

# ----------------------------------------------------------------------------
# Password hashing
# ----------------------------------------------------------------------------

BCRYPT_MAX_BYTES = 72


def hash_password(plain: str, rounds: int = 12) -> str:
    salt = _bcrypt_lib.gensalt(rounds=rounds)
    return _bcrypt_lib.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


# ----------------------------------------------------------------------------

def verify_password(plain: str, hashed: str) -> bool:
    # A corrupt or foreign hash counts as a mismatch.
    try:
        return _bcrypt_lib.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# ----------------------------------------------------------------------------
# JWT tokens
# ----------------------------------------------------------------------------

class TokenError(Exception):
    """A bearer/cookie token could not be turned into a session identity."""


class MalformedToken(TokenError):
    pass


class SignatureInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass


# ----------------------------------------------------------------------------

_REQUIRED_CLAIMS = ("sub", "role", "iat", "exp")


class TokenCodec:
    """Issue and validate signed access tokens carrying ``sub``/``role``/``iat``/``exp``."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl: timedelta = timedelta(hours=24)):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            settings.secret_key,
            algorithm=settings.algorithm,
            ttl=timedelta(minutes=settings.access_token_expire_minutes),
        )

    # ------------------------------------------------------------------------

    def issue(self, account_id: str, role: Role, issued_at: datetime | None = None) -> str:
        iat = issued_at or datetime.now(tz=timezone.utc)
        payload: dict[str, Any] = {
            "sub":  str(account_id),
            "role": role.value,
            "iat":  int(iat.timestamp()),
            "exp":  int((iat + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    # ------------------------------------------------------------------------

    def validate(self, token: str) -> SessionIdentity:
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken(str(exc)) from exc

        try:
            # Expiry is checked below with no leeway.
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTClaimsError as exc:
            # Signature checked out but a registered claim has the wrong type.
            raise MalformedToken(str(exc)) from exc
        except JWTError as exc:
            raise SignatureInvalid(str(exc)) from exc

        return self._identity_from_claims(claims)

    # ------------------------------------------------------------------------

    @staticmethod
    def _identity_from_claims(claims: dict[str, Any]) -> SessionIdentity:
        missing = [name for name in _REQUIRED_CLAIMS if name not in claims]
        if missing:
            raise MalformedToken(f"missing claims: {', '.join(missing)}")

        sub = claims["sub"]
        if not isinstance(sub, str) or not sub:
            raise MalformedToken("invalid subject")
        try:
            role = Role(claims["role"])
        except ValueError as exc:
            raise MalformedToken("invalid role") from exc

        iat, exp = claims["iat"], claims["exp"]
        if not isinstance(iat, (int, float)) or not isinstance(exp, (int, float)):
            raise MalformedToken("invalid timestamps")

        now = datetime.now(tz=timezone.utc).timestamp()
        if exp <= now:
            raise TokenExpired("token has expired")

        return SessionIdentity(
            account_id=sub,
            role=role,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )


# ----------------------------------------------------------------------------
# FastAPI dependency
# ----------------------------------------------------------------------------

def get_token_codec(settings: Settings = Depends(get_settings)) -> TokenCodec:
    return TokenCodec.from_settings(settings)


# ----------------------------------------------------------------------------
