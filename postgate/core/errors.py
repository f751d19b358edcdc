#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Error taxonomy
==============
Every error a client can see is an ``AppError`` subclass carrying an HTTP
status and a short message.  They all render as ``{"status", "message"}``
(see ``install_error_handlers``).

ValidationError   400   malformed input
Unauthenticated   401   missing/invalid/expired credential, unusable account
Forbidden         403   valid identity, insufficient authorization
NotFound          404   resource absent
Conflict          409   duplicate email, state clash
InternalError     500   storage / unexpected failure (details only in logs)
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, headers: dict[str, str] | None = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"

    def __init__(self, message: str | None = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(AppError):
    pass


# ── Login / account errors ───────────────────────────────────────────────────

class AuthError(Unauthenticated):
    """Base for the outcomes of a failed login or password re-check."""


class InvalidCredentials(AuthError):
    default_message = "Invalid email or password"


class NotVerified(AuthError):
    default_message = "Email address has not been verified"


class AccountUnavailable(Unauthenticated):
    """Token was valid but the account is gone or no longer verified."""


# -----------------------------------------------------------------------------

def error_body(status_code: int, message: str) -> dict:
    return {"status": status_code, "message": message}


# -----------------------------------------------------------------------------

def install_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def app_error(request: Request, exc: AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, exc.message),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(status.HTTP_400_BAD_REQUEST, message),
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error(request: Request, exc: SQLAlchemyError):
        log.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message),
        )


# -----------------------------------------------------------------------------
