"""
Pytest configuration and shared fixtures for testing.
Sets up a throwaway SQLite database per test and a test client bound to it.
"""

import os

# Configure the app before any app imports
os.environ["SKIP_ENV_FILE"] = "1"
os.environ["ENABLE_METRICS"] = "true"
os.environ["APP_ENV"] = "test"
os.environ["DB_CREATE_TABLES"] = "false"
os.environ["LOG_FILE"] = ""
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///./user_api_test.db")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from user_api.main import app
from user_api.container import build_container
from user_api.db import create_tables


@pytest_asyncio.fixture(scope="function")
async def test_db_engine(tmp_path):
    """Engine for a fresh SQLite file with the schema created from ORM metadata."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,  # Avoid connection pooling in tests
    )
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def container(test_db_engine):
    """Application components wired to the test database."""
    return build_container(test_db_engine)


@pytest.fixture
def repository(container):
    return container.user_repository


@pytest.fixture
def service(container):
    return container.user_service


@pytest_asyncio.fixture(scope="function")
async def client(container):
    """Test HTTP client for the app with its container swapped for the test one."""
    original_container = app.state.container
    app.state.container = container
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        timeout=30.0
    ) as ac:
        yield ac
    app.state.container = original_container


@pytest.fixture
def sample_user():
    """Sample user data for testing."""
    return {
        "name": "Test User",
        "email": "test@example.com",
    }


@pytest.fixture
def sample_users():
    """Multiple sample users."""
    return [
        {"name": "Alice", "email": "alice@example.com"},
        {"name": "Bob", "email": "bob@example.com"},
        {"name": "Charlie", "email": "charlie@example.com"},
    ]
