"""
Pytest configuration and fixtures for the wishlist tests.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wishlist.api.main import create_app
from wishlist.api.dependencies import (
    Settings,
    create_tables,
    dispose_database,
    get_session_factory,
    init_database,
)
from wishlist.security import encode_token
from wishlist.storage import InviteStore


# =============================================================================
# Test Settings
# =============================================================================

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'wishlist.db'}",
        database_echo=False,
        environment="test",
        debug=False,
    )


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture(scope="function")
async def database(test_settings):
    """Initialise the engine and create tables for one test."""
    init_database(test_settings)
    await create_tables()

    yield

    await dispose_database()


@pytest_asyncio.fixture(scope="function")
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Provide database session for tests."""
    async with get_session_factory()() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def issue_invite(database):
    """Issue a fresh invite code out of band and return it encoded."""

    async def _issue(**kwargs) -> str:
        async with get_session_factory()() as session:
            code = await InviteStore(session).issue(**kwargs)
        return encode_token(code)

    return _issue


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest_asyncio.fixture(scope="function")
async def app(test_settings, database):
    """Create FastAPI application for testing."""
    return create_app(test_settings)


@pytest_asyncio.fixture(scope="function")
async def client_factory(app):
    """
    Build independent clients, one cookie jar each.

    The base URL is https so the Secure session cookie is sent back.
    """
    clients = []

    def _make() -> AsyncClient:
        ac = AsyncClient(transport=ASGITransport(app=app), base_url="https://test")
        clients.append(ac)
        return ac

    yield _make

    for ac in clients:
        await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def client(client_factory) -> AsyncClient:
    """Provide an anonymous async HTTP client for API tests."""
    return client_factory()


# =============================================================================
# User Fixtures
# =============================================================================

@dataclass
class LoggedInUser:
    """A signed up user and the client holding their session cookie."""

    client: AsyncClient
    id: int
    first: str
    last: str
    email: str
    password: str


@pytest.fixture
def sample_signup() -> dict:
    """Signup body without the invite code."""
    return {
        "first": "Jane",
        "last": "Doe",
        "email": "jane@example.com",
        "password": "pw",
    }


@pytest_asyncio.fixture
async def signup_user(client_factory, issue_invite):
    """Sign a user up through the API and return a LoggedInUser."""

    async def _signup(first: str, last: str, email: str, password: str = "hunter2") -> LoggedInUser:
        ac = client_factory()
        response = await ac.post(
            "/api/signup",
            json={
                "first": first,
                "last": last,
                "email": email,
                "password": password,
                "invite_code": await issue_invite(),
            },
        )
        assert response.status_code == 200, response.text
        body = response.json()
        return LoggedInUser(
            client=ac,
            id=body["id"],
            first=first,
            last=last,
            email=email,
            password=password,
        )

    return _signup


@pytest_asyncio.fixture
async def alice(signup_user) -> LoggedInUser:
    return await signup_user("Alice", "Liddell", "alice@example.com")


@pytest_asyncio.fixture
async def bob(signup_user) -> LoggedInUser:
    return await signup_user("Bob", "Builder", "bob@example.com")


@pytest_asyncio.fixture
async def carol(signup_user) -> LoggedInUser:
    return await signup_user("Carol", "Danvers", "carol@example.com")
