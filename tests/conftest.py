"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("VAPID_PUBLIC_KEY", "test-vapid-public-key")
os.environ.setdefault("VAPID_PRIVATE_KEY", "test-vapid-private-key")
os.environ.setdefault("DEPLOYMENT_ORIGIN", "http://localhost:5173")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from rapper_dashboard.database import Base, enable_sqlite_savepoints, get_db  # noqa: E402
from rapper_dashboard.main import app  # noqa: E402
from rapper_dashboard.models.enums import UserRole  # noqa: E402
from rapper_dashboard.services.auth import create_access_token, create_user  # noqa: E402

SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]


class AuthHeaders(dict):
    """Dict subclass that also stores user info."""

    def __init__(self, *args, user_id: int | None = None, username: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.username = username


connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    enable_sqlite_savepoints(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    from rapper_dashboard import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Register a user and return auth headers with user info."""
    response = client.post(
        "/api/auth/register",
        json={
            "username": "ari",
            "name": "Ari Test",
            "email": "ari@example.com",
            "password": "testpass123",
        },
    )
    assert response.status_code == 201
    data = response.json()

    return AuthHeaders(
        {"Authorization": f"Bearer {data['token']}"},
        user_id=data["user"]["id"],
        username=data["user"]["username"],
    )


@pytest.fixture
def admin_headers(db):
    """Create an admin user directly in the store and return auth headers."""
    admin = create_user(
        db,
        username="admin",
        name="Administrador",
        email="admin@example.com",
        password="admin123",
        role=UserRole.ADMIN,
    )
    return AuthHeaders(
        {"Authorization": f"Bearer {create_access_token(admin)}"},
        user_id=admin.id,
        username=admin.username,
    )


@pytest.fixture
def make_item():
    """Factory for purchase items as the PWA sends them."""

    def _make_item(item_id: str = "song-1", price: float = 9.99, **overrides) -> dict:
        item = {
            "id": item_id,
            "songName": "Track",
            "albumName": "Album",
            "artist": "Artist",
            "albumCover": "https://example.com/cover.jpg",
            "year": 2020,
            "price": price,
        }
        item.update(overrides)
        return item

    return _make_item
