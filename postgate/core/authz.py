#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Authorization guard
===================
Decides whether an authenticated identity may act, given a requirement:

    AnyAuthenticated()                      any valid identity
    OwnerOf(owner_id)                       identity owns the resource
    RoleAtLeast(Role.ADMIN)                 identity role >= ADMIN
    AnyOf(OwnerOf(x), RoleAtLeast(ADMIN))   self-or-admin operations

``authorize`` is a pure decision; ``require`` turns a deny into ``Forbidden``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
from dataclasses import dataclass

from .errors import Forbidden
from .identity import Role, SessionIdentity


# -----------------------------------------------------------------------------

class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


# -----------------------------------------------------------------------------

class Requirement:
    def is_met_by(self, identity: SessionIdentity) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class AnyAuthenticated(Requirement):
    def is_met_by(self, identity: SessionIdentity) -> bool:
        return True


@dataclass(frozen=True)
class OwnerOf(Requirement):
    owner_id: str | None

    def is_met_by(self, identity: SessionIdentity) -> bool:
        return self.owner_id is not None and identity.account_id == str(self.owner_id)


@dataclass(frozen=True)
class RoleAtLeast(Requirement):
    role: Role

    def is_met_by(self, identity: SessionIdentity) -> bool:
        return identity.role >= self.role


@dataclass(frozen=True, init=False)
class AnyOf(Requirement):
    options: tuple[Requirement, ...]

    def __init__(self, *options: Requirement):
        object.__setattr__(self, "options", tuple(options))

    def is_met_by(self, identity: SessionIdentity) -> bool:
        return any(option.is_met_by(identity) for option in self.options)


# -----------------------------------------------------------------------------

def owner_or_admin(owner_id: str | None) -> AnyOf:
    return AnyOf(OwnerOf(owner_id), RoleAtLeast(Role.ADMIN))


# -----------------------------------------------------------------------------

def authorize(identity: SessionIdentity, required: Requirement) -> Decision:
    return Decision.ALLOW if required.is_met_by(identity) else Decision.DENY


# -----------------------------------------------------------------------------

def require(identity: SessionIdentity, required: Requirement, message: str | None = None) -> None:
    if authorize(identity, required) is Decision.DENY:
        raise Forbidden(message)


# -----------------------------------------------------------------------------
