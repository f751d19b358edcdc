from postgate.schemas.schemas import (
    OKResponse, ErrorResponse, ERROR_RESPONSES,
    AccountCreate, AccountUpdate, AccountResponse, AccountChangeResponse,
    PasswordChange, RoleUpdate,
    LoginRequest, TokenResponse,
    PostCreate, PostUpdate, PostResponse, AuthorSummary,
    check_password_strength,
)

__all__ = [
    "OKResponse", "ErrorResponse", "ERROR_RESPONSES",
    "AccountCreate", "AccountUpdate", "AccountResponse", "AccountChangeResponse",
    "PasswordChange", "RoleUpdate",
    "LoginRequest", "TokenResponse",
    "PostCreate", "PostUpdate", "PostResponse", "AuthorSummary",
    "check_password_strength",
]
