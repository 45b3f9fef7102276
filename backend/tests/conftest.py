"""
Worknest - Test Fixtures
========================

Shared pytest fixtures for all tests.

Every test gets a fresh in-memory SQLite database migrated to head, the
repositories wired to it, and an HTTP client bound to an app that uses it.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"

from collections.abc import AsyncGenerator
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from worknest.api.main import create_app
from worknest.core.config import Settings
from worknest.core.container import Services
from worknest.core.database import Database
from worknest.core.migrations import run_migrations
from worknest.core.models import Project, User
from worknest.core.schemas import ProjectCreate


# ==========================================================================
# Test Database Setup
# ==========================================================================

# Use in-memory SQLite for tests (fast)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "TestPass123!"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(UPLOAD_DIR=str(tmp_path / "uploads"))


@pytest_asyncio.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    """
    Provide a migrated database for each test.

    StaticPool keeps the single in-memory connection alive between
    transactions.
    """
    db = Database(TEST_DATABASE_URL, poolclass=StaticPool)
    await run_migrations(db)
    yield db
    await db.close()


@pytest.fixture
def services(database: Database, settings: Settings) -> Services:
    return Services.build(database, settings)


@pytest.fixture
def app(settings: Settings, database: Database) -> FastAPI:
    return create_app(settings=settings, database=database)


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide test HTTP client bound to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ==========================================================================
# User Fixtures
# ==========================================================================

@pytest_asyncio.fixture
async def test_user(services: Services) -> User:
    """
    Create a test user.

    Password: TestPass123!
    """
    return await services.auth.register("testuser", "test@example.com", TEST_PASSWORD)


@pytest_asyncio.fixture
async def other_user(services: Services) -> User:
    return await services.auth.register("otheruser", "other@example.com", TEST_PASSWORD)


@pytest_asyncio.fixture
async def project(services: Services, test_user: User) -> Project:
    return await services.projects.create(
        ProjectCreate(name="Test Project", description="Fixture project"),
        created_by=test_user.id,
    )


# ==========================================================================
# Auth Fixtures
# ==========================================================================

@pytest.fixture
def auth_headers(services: Services, test_user: User) -> dict[str, str]:
    """Get authorization headers for test user."""
    token = services.tokens.issue_token(test_user.id, test_user.username)
    return {"Authorization": f"Bearer {token.token}"}


@pytest.fixture
def other_headers(services: Services, other_user: User) -> dict[str, str]:
    token = services.tokens.issue_token(other_user.id, other_user.username)
    return {"Authorization": f"Bearer {token.token}"}


# ==========================================================================
# Helper Functions
# ==========================================================================

def unique_email() -> str:
    """Generate a unique email for tests."""
    return f"test_{uuid4().hex[:8]}@example.com"


def unique_username() -> str:
    return f"user_{uuid4().hex[:8]}"
