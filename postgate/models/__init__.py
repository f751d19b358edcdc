from postgate.models.models import (
    Account,
    AccountState,
    Post,
    VerificationToken,
    as_utc,
    utcnow,
)

__all__ = [
    "Account",
    "AccountState",
    "Post",
    "VerificationToken",
    "as_utc",
    "utcnow",
]
