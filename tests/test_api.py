"""API endpoint tests for health and authentication."""

import inspect

from fastapi.routing import APIRoute

from rapper_dashboard.main import app
from rapper_dashboard.models.user import User
from rapper_dashboard.services.auth import create_access_token


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["status"] == "OK"
    assert data["features"]["offlineSync"] is True


def test_unknown_route(client):
    """Unknown routes return the JSON error envelope."""
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Ruta no encontrada"}


def test_register_user(client):
    """Test user registration."""
    response = client.post(
        "/api/auth/register",
        json={
            "username": "newuser",
            "name": "New User",
            "email": "newuser@example.com",
            "password": "password123",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["token"]
    assert data["user"]["username"] == "newuser"
    assert data["user"]["role"] == "user"
    assert "password" not in data["user"]


def test_register_missing_fields(client):
    """Test registration without all required fields."""
    response = client.post(
        "/api/auth/register",
        json={"username": "incomplete", "password": "password123"},
    )
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_register_duplicate_username(client, auth_headers):
    """Test registration with a taken username fails."""
    response = client.post(
        "/api/auth/register",
        json={
            "username": auth_headers.username,
            "name": "Other",
            "email": "other@example.com",
            "password": "password123",
        },
    )
    assert response.status_code == 400
    assert response.json()["message"] == "El nombre de usuario ya está en uso"


def test_register_duplicate_email(client, auth_headers):
    """Test registration with a taken email fails."""
    response = client.post(
        "/api/auth/register",
        json={
            "username": "someoneelse",
            "name": "Other",
            "email": "ari@example.com",
            "password": "password123",
        },
    )
    assert response.status_code == 400
    assert response.json()["message"] == "El email ya está registrado"


def test_login(client, auth_headers):
    """Test user login."""
    response = client.post(
        "/api/auth/login", json={"username": auth_headers.username, "password": "testpass123"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["token"]
    assert data["user"]["id"] == auth_headers.user_id


def test_login_records_last_login(client, auth_headers, db):
    """Test that a successful login stamps last_login."""
    client.post(
        "/api/auth/login", json={"username": auth_headers.username, "password": "testpass123"}
    )
    user = db.query(User).filter(User.id == auth_headers.user_id).first()
    db.refresh(user)
    assert user.last_login is not None


def test_login_wrong_password(client, auth_headers):
    """Test login with wrong password."""
    response = client.post(
        "/api/auth/login", json={"username": auth_headers.username, "password": "wrongpass"}
    )
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Credenciales inválidas"}


def test_login_unknown_user(client):
    """Test login with a username that does not exist."""
    response = client.post("/api/auth/login", json={"username": "ghost", "password": "whatever"})
    assert response.status_code == 401
    assert response.json()["message"] == "Credenciales inválidas"


def test_verify_token(client, auth_headers):
    """Test verifying a valid token."""
    response = client.get("/api/auth/verify", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["user"]["username"] == auth_headers.username


def test_verify_without_token(client):
    """Test that a missing token is a 401."""
    response = client.get("/api/auth/verify")
    assert response.status_code == 401
    assert response.json()["message"] == "Token no proporcionado"


def test_verify_invalid_token(client):
    """Test that a malformed token is a 403."""
    response = client.get("/api/auth/verify", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 403
    assert response.json()["message"] == "Token inválido o expirado"


def test_verify_token_for_missing_user(client):
    """Test that a valid token for a user that no longer exists is a 404."""
    ghost = User(id=9999, username="ghost", email="ghost@example.com", role="user")
    headers = {"Authorization": f"Bearer {create_access_token(ghost)}"}

    response = client.get("/api/auth/verify", headers=headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Usuario no encontrado"


def test_store_handlers_run_in_threadpool():
    """Handlers that only touch the store are sync so they never block the event loop."""
    broadcasting = {
        "/api/notifications/send",
        "/api/notifications/users/{user_id}/send",
        "/api/admin/send-notification",
    }
    for route in app.routes:
        if isinstance(route, APIRoute) and route.path.startswith("/api/"):
            if route.path not in broadcasting and route.path != "/api/health":
                assert not inspect.iscoroutinefunction(route.endpoint), route.path
