"""
Test Configuration and Fixtures

Common test setup for Accounts Service tests: a temporary SQLite database
per test, seeded salt, and HTTP clients with a chosen transport address.
"""

import base64
from typing import AsyncGenerator, Tuple

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pal_accounts_service.app import create_app
from pal_accounts_service.database import create_session_factory, init_database
from pal_accounts_service.models import SALT_SETTING_KEY, GlobalSetting
from pal_accounts_service.services import AccountService
from pal_accounts_service.settings import AccountsSettings

TEST_SALT = b"pal-test-salt-0123456789abcdef!!"
TEST_SIGNING_KEY = base64.b64encode(b"pal-test-signing-key-0123456789!").decode("ascii")
TEST_ISSUER = "https://accounts.pal.test"
TEST_AUDIENCE = "pal-test-clients"

CLIENT_ADDRESS = "203.0.113.7"


@pytest.fixture
def test_settings(tmp_path) -> AccountsSettings:
    """Test configuration settings."""
    return AccountsSettings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}",
        jwt_issuer=TEST_ISSUER,
        jwt_audience=TEST_AUDIENCE,
        jwt_key=TEST_SIGNING_KEY,
    )


@pytest_asyncio.fixture
async def session_factory(test_settings) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a freshly created schema."""
    engine, factory = create_session_factory(test_settings.database_url)
    await init_database(engine)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_salt(session_factory) -> bytes:
    """Store the salt setting the way the seed-salt command does."""
    async with session_factory() as session:
        session.add(GlobalSetting(key=SALT_SETTING_KEY, value=base64.b64encode(TEST_SALT).decode("ascii")))
        await session.commit()
    return TEST_SALT


@pytest_asyncio.fixture
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def account_service(test_settings) -> AccountService:
    return AccountService.from_settings(test_settings)


async def _build_app(settings: AccountsSettings) -> FastAPI:
    app = create_app(settings)
    await init_database(app.state.engine)
    return app


@pytest_asyncio.fixture
async def test_app(test_settings, seeded_salt) -> AsyncGenerator[FastAPI, None]:
    app = await _build_app(test_settings)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture
async def unsalted_app(test_settings, session_factory) -> AsyncGenerator[FastAPI, None]:
    app = await _build_app(test_settings)
    yield app
    await app.state.engine.dispose()


def client_for(app: FastAPI, host: str = CLIENT_ADDRESS, port: int = 50000) -> httpx.AsyncClient:
    """HTTP client whose requests arrive from ``host`` at the transport layer."""
    transport = httpx.ASGITransport(app=app, client=(host, port))
    return httpx.AsyncClient(transport=transport, base_url="http://testserver")


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with client_for(test_app) as c:
        yield c


@pytest_asyncio.fixture
async def proxy_client(test_app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Client connecting from the local reverse proxy."""
    async with client_for(test_app, host="127.0.0.1") as c:
        yield c


async def login_token(client: httpx.AsyncClient) -> Tuple[str, str]:
    """Create an account and log into it; returns (account_id, token)."""
    created = (await client.post("/v1/accounts")).json()
    login = (await client.post("/v1/accounts/login", json={"accountId": created["accountId"]})).json()
    return created["accountId"], login["authToken"]
