#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Roles and the per-request session identity.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


# -----------------------------------------------------------------------------

class Role(enum.Enum):
    """Account role.  Ordered: ADMIN >= USER."""

    USER = "USER"
    ADMIN = "ADMIN"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def __ge__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank >= other.rank

    def __gt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank > other.rank

    def __le__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank <= other.rank

    def __lt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank < other.rank


_ROLE_RANK = {Role.USER: 0, Role.ADMIN: 1}


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionIdentity:
    """Who is making the request, as proven by a validated JWT.

    Built by the auth resolver for the duration of one request; never stored.
    """

    account_id: str
    role: Role
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role >= Role.ADMIN


# -----------------------------------------------------------------------------
