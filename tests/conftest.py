"""Pytest fixtures - a fresh SQLite database and app instance per test."""
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from permauto.auth import create_access_token, get_password_hash
from permauto.config import Settings
from permauto.database import Database
from permauto.main import create_app
from permauto.models.user import User, UserRole

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"


@pytest.fixture(scope="function")
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        SECRET_KEY=TEST_SECRET,
        ENVIRONMENT="test",
        CORS_ORIGINS="http://localhost:3000",
    )


@pytest.fixture(scope="function")
def database(settings):
    """Create a fresh SQLite database for each test."""
    database = Database(settings.DATABASE_URL)

    @event.listens_for(database.engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    database.create_all()
    yield database
    database.dispose()


@pytest.fixture(scope="function")
def app(settings, database):
    return create_app(settings=settings, database=database)


@pytest.fixture(scope="function")
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def db(database):
    """A session for seeding and inspecting data directly."""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def create_user(db, role: UserRole = UserRole.USER, email: str = None, name: str = "Test User",
                password: str = "secret") -> User:
    """Insert a user straight into the database."""
    user = User(
        name=name,
        email=email or f"{uuid.uuid4().hex[:8]}@example.com",
        hashed_password=get_password_hash(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def login_as(client: TestClient, user: User, settings: Settings) -> str:
    """Put a session token for ``user`` in the client's cookie jar."""
    token = create_access_token(user.id, settings)
    client.cookies.clear()
    client.cookies.set(settings.TOKEN_COOKIE_NAME, token)
    return token


def authorization_payload(**overrides) -> dict:
    payload = {
        "companyName": "Transportes Andinos SAC",
        "ruc": "20123456789",
        "reason": "Quarterly maintenance visit",
        "userId": "visitor-001",
        "startDate": "2025-03-01T08:00:00",
        "endDate": "2025-03-05T18:00:00",
    }
    payload.update(overrides)
    return payload


def create_authorization(client: TestClient, **overrides) -> dict:
    """POST /authorizations/ as the currently logged-in subadmin."""
    resp = client.post("/authorizations", json=authorization_payload(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()["authorization"]
