#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for admin endpoints."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
from httpx import AsyncClient

from postgate.core.errors import Conflict
from postgate.services.accounts import create_admin
from tests.conftest import DEFAULT_PASSWORD, bearer, login, signup


# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_users(client: AsyncClient, mailer, admin_token):
    await signup(client, mailer, "bob@example.com", "Bob")
    resp = await client.get("/api/v1/admin/users", headers=bearer(admin_token))
    assert resp.status_code == 200
    emails = {u["email"] for u in resp.json()}
    assert emails == {"root@example.com", "bob@example.com"}


@pytest.mark.asyncio
async def test_list_users_requires_admin(client: AsyncClient, mailer):
    _, token = await signup(client, mailer)
    resp = await client.get("/api/v1/admin/users", headers=bearer(token))
    assert resp.status_code == 403
    assert resp.json() == {"status": 403, "message": "Admin access required"}


@pytest.mark.asyncio
async def test_list_users_requires_auth(client: AsyncClient):
    resp = await client.get("/api/v1/admin/users")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_promote_applies_to_existing_token(client: AsyncClient, mailer, admin_token):
    bob, bob_token = await signup(client, mailer, "bob@example.com", "Bob")

    resp = await client.patch(
        f"/api/v1/admin/users/{bob['id']}/role", json={"role": "ADMIN"}, headers=bearer(admin_token),
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "ADMIN"

    # The token was issued while bob was a USER.
    resp = await client.get("/api/v1/admin/users", headers=bearer(bob_token))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_demoted_admin_loses_access_with_existing_token(client: AsyncClient, mailer, admin_token):
    bob, _ = await signup(client, mailer, "bob@example.com", "Bob")
    resp = await client.patch(
        f"/api/v1/admin/users/{bob['id']}/role", json={"role": "ADMIN"}, headers=bearer(admin_token),
    )
    assert resp.status_code == 200
    bob_token = await login(client, "bob@example.com")

    admin_id = (await client.get("/api/v1/auth/me", headers=bearer(admin_token))).json()["id"]
    resp = await client.patch(
        f"/api/v1/admin/users/{admin_id}/role", json={"role": "USER"}, headers=bearer(bob_token),
    )
    assert resp.status_code == 200

    resp = await client.get("/api/v1/admin/users", headers=bearer(admin_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_cannot_change_own_role(client: AsyncClient, admin_token, codec):
    admin_id = codec.validate(admin_token).account_id
    resp = await client.patch(
        f"/api/v1/admin/users/{admin_id}/role", json={"role": "USER"}, headers=bearer(admin_token),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_invalid_role(client: AsyncClient, mailer, admin_token):
    bob, _ = await signup(client, mailer, "bob@example.com", "Bob")
    resp = await client.patch(
        f"/api/v1/admin/users/{bob['id']}/role", json={"role": "ROOT"}, headers=bearer(admin_token),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_set_role_unknown_account(client: AsyncClient, admin_token):
    resp = await client.patch(
        "/api/v1/admin/users/nobody/role", json={"role": "ADMIN"}, headers=bearer(admin_token),
    )
    assert resp.status_code == 404


# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_bootstrap_admin(client: AsyncClient, db_session, settings, codec):
    account = await create_admin(db_session, "Boot", "Boot@Example.com", DEFAULT_PASSWORD, settings)
    await db_session.commit()
    assert account.email == "boot@example.com"

    token = await login(client, "boot@example.com")
    assert codec.validate(token).is_admin
    assert (await client.get("/api/v1/admin/users", headers=bearer(token))).status_code == 200

    with pytest.raises(Conflict):
        await create_admin(db_session, "Again", "boot@example.com", DEFAULT_PASSWORD, settings)


# -----------------------------------------------------------------------------
