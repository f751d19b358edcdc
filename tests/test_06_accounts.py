#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the account lifecycle: profile, password, re-verification, deletion."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from postgate.core.identity import Role
from postgate.models import Post, VerificationToken
from tests.conftest import (
    DEFAULT_PASSWORD, bearer, login, register_account, signup, verify_account,
)


# -----------------------------------------------------------------------------
# Profile
# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_name(client: AsyncClient, mailer):
    _, token = await signup(client, mailer)
    resp = await client.patch("/api/v1/auth/me", json={"name": "  Alicia "}, headers=bearer(token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["account"]["name"] == "Alicia"
    assert data["account"]["email_verified"] is True
    assert len(mailer.sent) == 1


@pytest.mark.asyncio
async def test_email_change_requires_reverification(client: AsyncClient, mailer):
    account = await register_account(client, "old@example.com", "Old")
    old_token = mailer.last_token("old@example.com")
    await verify_account(client, mailer, "old@example.com")
    token = await login(client, "old@example.com")

    # Nothing to resend once verified.
    resend = await client.post("/api/v1/auth/resend-verification", headers=bearer(token))
    assert resend.status_code == 400

    resp = await client.patch(
        "/api/v1/auth/me", json={"email": "New@Example.com"}, headers=bearer(token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["account"]["email"] == "new@example.com"
    assert data["account"]["email_verified"] is False
    assert mailer.sent[-1][0] == "new@example.com"

    # Old link is gone; verified-only routes stay closed until the new one is used.
    stale = await client.get("/api/v1/auth/verify-email", params={"token": old_token})
    assert stale.status_code == 404
    blocked = await client.get("/api/v1/posts/mine", headers=bearer(token))
    assert blocked.status_code == 401

    verified = await verify_account(client, mailer, "new@example.com")
    assert verified["id"] == account["id"]
    assert verified["email_verified"] is True

    relogin = await client.post("/api/v1/auth/login", json={
        "email": "new@example.com", "password": DEFAULT_PASSWORD,
    })
    assert relogin.status_code == 200


@pytest.mark.asyncio
async def test_email_change_to_taken_address(client: AsyncClient, mailer):
    await register_account(client, "taken@example.com", "Taken")
    _, token = await signup(client, mailer)
    resp = await client.patch(
        "/api/v1/auth/me", json={"email": "TAKEN@example.com"}, headers=bearer(token),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_same_email_is_not_a_change(client: AsyncClient, mailer):
    _, token = await signup(client, mailer)
    sent_before = len(mailer.sent)
    resp = await client.patch(
        "/api/v1/auth/me", json={"email": "alice@example.com"}, headers=bearer(token),
    )
    assert resp.status_code == 200
    assert resp.json()["account"]["email_verified"] is True
    assert len(mailer.sent) == sent_before


@pytest.mark.asyncio
async def test_resend_verification(client: AsyncClient, mailer, codec):
    account = await register_account(client, "lee@example.com", "Lee")
    first = mailer.last_token("lee@example.com")
    token = codec.issue(account["id"], Role.USER)

    resp = await client.post("/api/v1/auth/resend-verification", headers=bearer(token))
    assert resp.status_code == 200
    second = mailer.last_token("lee@example.com")
    assert second != first

    assert (await client.get("/api/v1/auth/verify-email", params={"token": first})).status_code == 404
    assert (await client.get("/api/v1/auth/verify-email", params={"token": second})).status_code == 200


# -----------------------------------------------------------------------------
# Password
# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, mailer):
    _, token = await signup(client, mailer)
    resp = await client.put("/api/v1/auth/change-password", json={
        "old_password": DEFAULT_PASSWORD,
        "new_password": "An0ther-secret!",
    }, headers=bearer(token))
    assert resp.status_code == 200

    old = await client.post("/api/v1/auth/login", json={
        "email": "alice@example.com", "password": DEFAULT_PASSWORD,
    })
    assert old.status_code == 401
    assert await login(client, "alice@example.com", "An0ther-secret!")


@pytest.mark.asyncio
async def test_change_password_wrong_current(client: AsyncClient, mailer):
    _, token = await signup(client, mailer)
    resp = await client.put("/api/v1/auth/change-password", json={
        "old_password": "Wr0ng-password!",
        "new_password": "An0ther-secret!",
    }, headers=bearer(token))
    assert resp.status_code == 401
    assert resp.json()["message"] == "Current password is incorrect"


@pytest.mark.asyncio
async def test_change_password_must_differ(client: AsyncClient, mailer):
    _, token = await signup(client, mailer)
    resp = await client.put("/api/v1/auth/change-password", json={
        "old_password": DEFAULT_PASSWORD,
        "new_password": DEFAULT_PASSWORD,
    }, headers=bearer(token))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_change_password_weak(client: AsyncClient, mailer):
    _, token = await signup(client, mailer)
    resp = await client.put("/api/v1/auth/change-password", json={
        "old_password": DEFAULT_PASSWORD,
        "new_password": "weak",
    }, headers=bearer(token))
    assert resp.status_code == 400


# -----------------------------------------------------------------------------
# Deletion
# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_self_then_login_fails(client: AsyncClient, mailer, db_session):
    account, token = await signup(client, mailer)
    created = await client.post(
        "/api/v1/posts", json={"title": "Mine", "content": "Body"}, headers=bearer(token),
    )
    assert created.status_code == 201

    resp = await client.delete(f"/api/v1/users/{account['id']}", headers=bearer(token))
    assert resp.status_code == 200

    login_again = await client.post("/api/v1/auth/login", json={
        "email": "alice@example.com", "password": DEFAULT_PASSWORD,
    })
    assert login_again.status_code == 401
    assert login_again.json()["message"] == "Invalid email or password"

    # The still-unexpired JWT no longer resolves.
    me = await client.get("/api/v1/auth/me", headers=bearer(token))
    assert me.status_code == 401

    posts = (await db_session.execute(select(func.count()).select_from(Post))).scalar_one()
    tokens = (await db_session.execute(select(func.count()).select_from(VerificationToken))).scalar_one()
    assert posts == 0
    assert tokens == 0


@pytest.mark.asyncio
async def test_delete_unverified_self(client: AsyncClient, codec):
    account = await register_account(client, "temp@example.com", "Temp")
    token = codec.issue(account["id"], Role.USER)
    resp = await client.delete(f"/api/v1/users/{account['id']}", headers=bearer(token))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_delete_other_forbidden(client: AsyncClient, mailer):
    bob, _ = await signup(client, mailer, "bob@example.com", "Bob")
    _, token = await signup(client, mailer, "eve@example.com", "Eve")
    resp = await client.delete(f"/api/v1/users/{bob['id']}", headers=bearer(token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_deletes_other(client: AsyncClient, mailer, admin_token):
    bob, _ = await signup(client, mailer, "bob@example.com", "Bob")
    resp = await client.delete(f"/api/v1/users/{bob['id']}", headers=bearer(admin_token))
    assert resp.status_code == 200

    missing = await client.delete(f"/api/v1/users/{bob['id']}", headers=bearer(admin_token))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_unverified_admin_cannot_delete_other(client: AsyncClient, mailer, admin_token):
    bob, _ = await signup(client, mailer, "bob@example.com", "Bob")
    changed = await client.patch(
        "/api/v1/auth/me", json={"email": "new-root@example.com"}, headers=bearer(admin_token),
    )
    assert changed.json()["account"]["email_verified"] is False

    resp = await client.delete(f"/api/v1/users/{bob['id']}", headers=bearer(admin_token))
    assert resp.status_code == 401
    assert resp.json()["message"] == "Email address has not been verified"
    assert await login(client, "bob@example.com")

    await verify_account(client, mailer, "new-root@example.com")
    resp = await client.delete(f"/api/v1/users/{bob['id']}", headers=bearer(admin_token))
    assert resp.status_code == 200


# -----------------------------------------------------------------------------
