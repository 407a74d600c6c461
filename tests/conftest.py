"""Pytest fixtures for testing."""
import os
from collections.abc import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from hidden_profiles.core.cache import MemoryCache, set_shared_cache
from hidden_profiles.core.extensions import ExtensionRegistry, get_extension_registry
from hidden_profiles.models.base import Base
from hidden_profiles.services.hidden_set import HiddenSetResolver
from tests.fakes import FakeClock, InMemoryAttributeStore


# ---------------------------------------------------------------------------
# In-memory fixtures (no database)
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock for cache expiry tests."""
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCache:
    """In-process shared cache driven by the fake clock."""
    return MemoryCache(clock=clock)


@pytest.fixture
def store() -> InMemoryAttributeStore:
    """Dict-backed attribute store."""
    return InMemoryAttributeStore()


@pytest.fixture
def extensions() -> ExtensionRegistry:
    """Empty extension registry."""
    return ExtensionRegistry()


@pytest.fixture
def resolver(
    store: InMemoryAttributeStore,
    cache: MemoryCache,
    extensions: ExtensionRegistry,
) -> HiddenSetResolver:
    """Resolver over the in-memory store and cache."""
    return HiddenSetResolver(store, cache, extensions)


@pytest.fixture(autouse=True)
def _reset_global_extensions() -> Generator[None]:
    """Keep handlers registered on the global registry from leaking between tests."""
    yield
    get_extension_registry().clear()


# ---------------------------------------------------------------------------
# Database fixtures (PostgreSQL in a container)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer]:
    """Start a PostgreSQL container for the test session; skip DB tests without Docker."""
    container = PostgresContainer("postgres:16", driver="asyncpg")
    try:
        container.start()
    except Exception as e:  # noqa: BLE001
        pytest.skip(f"PostgreSQL container unavailable: {e}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def database_url(postgres_container: PostgresContainer) -> str:
    """
    Get the database URL from the container and set it in environment.

    This must be set before any app imports that trigger Settings validation.
    """
    url = postgres_container.get_connection_url()
    os.environ["DATABASE_URL"] = url
    os.environ["REDIS_ENABLED"] = "false"
    return url


@pytest.fixture
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine]:
    """Create an async engine for testing."""
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_connection(async_engine: AsyncEngine) -> AsyncGenerator[AsyncConnection]:
    """
    Create a connection with a transaction that will be rolled back after the test.

    This provides test isolation - each test runs in its own transaction
    that is rolled back, so tests don't affect each other.
    """
    async with async_engine.connect() as connection:
        transaction = await connection.begin()
        try:
            yield connection
        finally:
            await transaction.rollback()


@pytest.fixture
async def db_session(db_connection: AsyncConnection) -> AsyncGenerator[AsyncSession]:
    """
    Create an async session bound to the test transaction.

    Uses savepoints, allowing the session's flush/commit to work within our
    outer test transaction.
    """
    session_factory = async_sessionmaker(
        bind=db_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(
    db_session: AsyncSession,
    cache: MemoryCache,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database session and cache overrides."""
    # Clear the settings cache so it picks up DATABASE_URL from environment
    from hidden_profiles.core.config import get_settings

    get_settings.cache_clear()

    from hidden_profiles.api.main import app
    from hidden_profiles.db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    set_shared_cache(cache)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    set_shared_cache(None)
