"""
Shared fixtures: in-memory database, fake identity provider, and an HTTP
client bound to the application.
"""
import os

# Settings are read once at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "development")

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from aiohttp.test_utils import TestServer  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from fict.infrastructure.database.base import Base, get_db  # noqa: E402
from fict.main import create_app  # noqa: E402
from fict.services.auth.oauth import (  # noqa: E402
    GitHubOAuthProvider,
    OAuthHandshake,
    OAuthStateStore,
    ProviderOptions,
    ProviderRegistry,
)
from tests.mocks.oauth_providers import FakeIdentityProvider  # noqa: E402

CALLBACK_BASE_URL = "http://localhost:3000/api/v1"


@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def fake_provider() -> AsyncGenerator[FakeIdentityProvider, None]:
    """Fake identity provider listening on a local port."""
    fake = FakeIdentityProvider()
    server = TestServer(fake.app())
    await server.start_server()
    fake.base_url = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()


@pytest.fixture
def github_provider(fake_provider) -> GitHubOAuthProvider:
    options = ProviderOptions(
        name="github",
        route_prefix="/oauth",
        client_id="test-github-client-id",
        client_secret="test-github-client-secret",
        authorization_url="https://github.com/login/oauth/authorize",
        token_url=fake_provider.token_url,
    )
    return GitHubOAuthProvider(
        options,
        OAuthStateStore("github"),
        CALLBACK_BASE_URL,
        api_url=fake_provider.base_url,
    )


@pytest.fixture
def handshake() -> OAuthHandshake:
    return OAuthHandshake(http_timeout_seconds=2.0)


@pytest_asyncio.fixture
async def client(github_provider, handshake, session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for an app routing only the fake GitHub provider."""
    registry = ProviderRegistry()
    registry.register(github_provider)
    app = create_app(registry=registry, handshake=handshake)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
