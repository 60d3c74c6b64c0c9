"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite database file through aiosqlite, so
nothing here needs a running Postgres or HTTP server.
"""

import asyncio
import os

# Must be set before taskhub.core.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-used-only-by-the-test-suite"

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from taskhub.core.jwt import create_access_token
from taskhub.core.security import hash_password
from taskhub.db.session import create_tables, get_db
from taskhub.main import create_app
from taskhub.repositories.user_repository import UserRepository

TEST_PASSWORD = "Password123"

# Low bcrypt cost keeps fixture setup fast
TEST_BCRYPT_ROUNDS = 4


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: uses a per-test SQLite database")
    config.addinivalue_line("markers", "server: drives the ASGI app through TestClient")


def token_for(user_id: str, email: str, name: str) -> str:
    return create_access_token({"sub": user_id, "email": email, "name": name})


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'taskhub-test.db'}"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(sqlite_url(tmp_path), poolclass=NullPool)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def users(db):
    """Two users, U1 (Alice) and U2 (Bob)."""
    repository = UserRepository(db)
    alice = await repository.create(
        email="alice@example.com",
        name="Alice",
        hashed_password=hash_password(TEST_PASSWORD, rounds=TEST_BCRYPT_ROUNDS),
        user_id="U1",
    )
    bob = await repository.create(
        email="bob@example.com",
        name="Bob",
        hashed_password=hash_password(TEST_PASSWORD, rounds=TEST_BCRYPT_ROUNDS),
        user_id="U2",
    )
    await db.commit()
    return alice, bob


@pytest.fixture
def app(tmp_path):
    """Application wired to a fresh SQLite file instead of the configured database."""
    engine = create_async_engine(sqlite_url(tmp_path), poolclass=NullPool)
    asyncio.run(create_tables(engine))
    test_session_maker = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_db():
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application = create_app()
    application.dependency_overrides[get_db] = override_get_db
    yield application
    asyncio.run(engine.dispose())


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, email: str, name: str, password: str = TEST_PASSWORD) -> dict:
    """Register through the API and return {user, token}."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "name": name, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
