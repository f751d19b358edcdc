#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for Postgate tests.
Uses an in-memory SQLite database so no external services are needed, and a
recording mailer so verification links can be read back without SMTP.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import postgate.models  # noqa: F401
from postgate.core.config import Settings, get_settings
from postgate.core.database import Base, get_db, make_engine
from postgate.core.identity import Role
from postgate.core.security import TokenCodec
from postgate.main import create_app
from postgate.models import Account
from postgate.services.email import get_mailer


# -----------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "Sup3r-secret!"


# -----------------------------------------------------------------------------

class RecordingMailer:
    """Stands in for SMTP: keeps every (to_address, link) it was asked to send."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    async def send(self, to_address: str, verification_link: str) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unreachable")
        self.sent.append((to_address, verification_link))

    def last_token(self, to_address: str | None = None) -> str:
        for address, link in reversed(self.sent):
            if to_address is None or address == to_address:
                return parse_qs(urlparse(link).query)["token"][0]
        raise AssertionError(f"no verification mail sent to {to_address}")


# -----------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(
        secret_key="test-secret-key-not-for-production",
        environment="testing",
        base_url="http://test",
        bcrypt_rounds=4,
        smtp_host="",
    )


@pytest.fixture
def codec(settings) -> TokenCodec:
    return TokenCodec.from_settings(settings)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = make_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session_factory(db_engine):
    """Shared sessionmaker - both client and db_session use this."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_factory):
    """Direct DB session for test setup (admin promotion, etc)."""
    async with db_session_factory() as session:
        yield session


@pytest.fixture
def app(db_engine, db_session_factory, settings, mailer):
    """Application with storage, settings and mailer overridden."""
    async def override_get_db():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_mailer] = lambda: mailer
    return app


@pytest_asyncio.fixture(scope="function")
async def client(app):
    """HTTP test client wired to an isolated in-memory DB."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

async def register_account(client: AsyncClient, email: str = "alice@example.com",
                           name: str = "Alice", password: str = DEFAULT_PASSWORD) -> dict:
    resp = await client.post("/api/v1/auth/register", json={
        "name": name,
        "email": email,
        "password": password,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["account"]


async def verify_account(client: AsyncClient, mailer: RecordingMailer, email: str) -> dict:
    token = mailer.last_token(email)
    resp = await client.get("/api/v1/auth/verify-email", params={"token": token})
    assert resp.status_code == 200, resp.text
    return resp.json()


async def login(client: AsyncClient, email: str = "alice@example.com",
                password: str = DEFAULT_PASSWORD) -> str:
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    # Keep credentials explicit per request.
    client.cookies.clear()
    return resp.json()["access_token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def cookie(token: str, name: str = "auth-token") -> dict:
    return {"Cookie": f"{name}={token}"}


async def signup(client: AsyncClient, mailer: RecordingMailer, email: str = "alice@example.com",
                 name: str = "Alice", password: str = DEFAULT_PASSWORD) -> tuple[dict, str]:
    """Register, verify and log in; returns (account, access_token)."""
    account = await register_account(client, email, name, password)
    await verify_account(client, mailer, email)
    return account, await login(client, email, password)


async def promote(db_session: AsyncSession, account_id: str, role: Role = Role.ADMIN) -> None:
    account = await db_session.get(Account, account_id)
    account.role = role
    await db_session.commit()


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def admin_token(client, mailer, db_session) -> str:
    """Access token of a verified ADMIN (role is taken from the JWT, so promote before login)."""
    account = await register_account(client, "root@example.com", "Root")
    await verify_account(client, mailer, "root@example.com")
    await promote(db_session, account["id"])
    return await login(client, "root@example.com")


# -----------------------------------------------------------------------------
