#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for roles and the authorization guard."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from postgate.core.authz import (
    AnyAuthenticated, AnyOf, Decision, OwnerOf, RoleAtLeast,
    authorize, owner_or_admin, require,
)
from postgate.core.errors import Forbidden
from postgate.core.identity import Role, SessionIdentity


# -----------------------------------------------------------------------------

def _identity(account_id: str = "u1", role: Role = Role.USER) -> SessionIdentity:
    now = datetime.now(tz=timezone.utc)
    return SessionIdentity(account_id, role, now, now + timedelta(hours=1))


USER = _identity("u1")
OTHER = _identity("u2")
ADMIN = _identity("a1", Role.ADMIN)


# -----------------------------------------------------------------------------

def test_role_order():
    assert Role.ADMIN >= Role.USER
    assert Role.ADMIN > Role.USER
    assert Role.USER < Role.ADMIN
    assert Role.USER >= Role.USER
    assert not Role.USER >= Role.ADMIN


def test_role_rejects_foreign_comparison():
    with pytest.raises(TypeError):
        Role.USER < "ADMIN"


@pytest.mark.parametrize("identity, required, expected", [
    (USER, AnyAuthenticated(), Decision.ALLOW),
    (USER, OwnerOf("u1"), Decision.ALLOW),
    (OTHER, OwnerOf("u1"), Decision.DENY),
    (ADMIN, OwnerOf("u1"), Decision.DENY),
    (USER, OwnerOf(None), Decision.DENY),
    (USER, RoleAtLeast(Role.USER), Decision.ALLOW),
    (USER, RoleAtLeast(Role.ADMIN), Decision.DENY),
    (ADMIN, RoleAtLeast(Role.ADMIN), Decision.ALLOW),
    (USER, owner_or_admin("u1"), Decision.ALLOW),
    (OTHER, owner_or_admin("u1"), Decision.DENY),
    (ADMIN, owner_or_admin("u1"), Decision.ALLOW),
    (OTHER, AnyOf(), Decision.DENY),
])
def test_authorize(identity, required, expected):
    assert authorize(identity, required) is expected


def test_require_raises_forbidden():
    with pytest.raises(Forbidden) as info:
        require(OTHER, OwnerOf("u1"), "Not yours")
    assert info.value.status_code == 403
    assert info.value.message == "Not yours"


def test_require_allows_silently():
    assert require(ADMIN, owner_or_admin("u1")) is None


def test_identity_is_admin():
    assert ADMIN.is_admin
    assert not USER.is_admin


# -----------------------------------------------------------------------------
