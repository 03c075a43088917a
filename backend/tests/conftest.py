"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before the application settings are imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CREDENTIAL_STORE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from secrets_manager import models  # noqa: F401
from secrets_manager.core.database import Base, get_db
from secrets_manager.core.rate_limit import limiter
from secrets_manager.models.user import GlobalRole, User
from secrets_manager.services.auth_service import auth_service
from secrets_manager.services.credential_store import InMemoryCredentialStore, get_credential_store
from secrets_manager.services.secret_manager import SecretManager
from secrets_manager.utils.exceptions import CredentialStoreError

from tests.factories import create_test_user


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class FakeCredentialStore(InMemoryCredentialStore):
    """In-memory store that records calls and can be told to fail."""

    def __init__(self):
        super().__init__()
        self.calls = []
        self.fail_put = False
        self.fail_delete = False
        self.fail_delete_paths = set()

    async def put(self, path: str, value: str, encrypted: bool) -> None:
        self.calls.append(("put", path))
        if self.fail_put:
            raise CredentialStoreError("simulated put failure", path=path)
        await super().put(path, value, encrypted)

    async def get(self, path: str) -> str:
        self.calls.append(("get", path))
        return await super().get(path)

    async def delete(self, path: str) -> None:
        self.calls.append(("delete", path))
        if self.fail_delete or path in self.fail_delete_paths:
            raise CredentialStoreError("simulated delete failure", path=path)
        await super().delete(path)

    def calls_for(self, operation: str) -> list:
        return [path for op, path in self.calls if op == operation]


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def credential_store() -> FakeCredentialStore:
    return FakeCredentialStore()


@pytest.fixture
def secret_manager(credential_store: FakeCredentialStore) -> SecretManager:
    return SecretManager(credential_store, namespace="test")


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession, credential_store: FakeCredentialStore) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client sharing the test session and credential store."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_credential_store] = lambda: credential_store
    limiter.enabled = False

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a regular test user."""
    return await create_test_user(db_session)


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await create_test_user(db_session, username="otheruser", email="other@example.com")


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create a global admin test user."""
    return await create_test_user(
        db_session,
        username="admin",
        email="admin@example.com",
        password="adminpassword123",
        role=GlobalRole.ADMIN.value,
    )


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_access_token(user.id)}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Authentication headers for the regular test user."""
    return bearer(test_user)


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return bearer(other_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    """Authentication headers for the global admin."""
    return bearer(admin_user)
