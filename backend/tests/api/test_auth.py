"""
Worknest - Authentication API Tests
===================================

Registration, login and the bearer-token gate in front of protected routes.
"""

from datetime import timedelta
from uuid import UUID

from httpx import AsyncClient

from worknest.core.config import Settings
from worknest.core.container import Services
from worknest.core.models import User
from worknest.core.security import TokenManager

from tests.conftest import TEST_PASSWORD, unique_email, unique_username


# ==========================================================================
# Registration Tests
# ==========================================================================

class TestRegistration:
    """Tests for user registration endpoint."""

    async def test_register_success(self, client: AsyncClient):
        """New user can register with valid data."""
        username = unique_username()
        response = await client.post(
            "/api/auth/register",
            json={"username": username, "email": unique_email(), "password": "ValidPass123!"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["username"] == username
        assert "id" in data["user"]
        assert data["token"]
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]

    async def test_register_duplicate_username(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/register",
            json={"username": test_user.username, "email": unique_email(), "password": "ValidPass123!"},
        )

        assert response.status_code == 409
        assert "error" in response.json()

    async def test_register_duplicate_email(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/register",
            json={"username": unique_username(), "email": test_user.email, "password": "ValidPass123!"},
        )

        assert response.status_code == 409

    async def test_register_password_too_short(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": unique_username(), "email": unique_email(), "password": "short"},
        )

        assert response.status_code == 400
        assert "password" in response.json()["error"]

    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": unique_username(), "email": "not-an-email", "password": "ValidPass123!"},
        )

        assert response.status_code == 400

    async def test_register_short_username(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": "ab", "email": unique_email(), "password": "ValidPass123!"},
        )

        assert response.status_code == 400


# ==========================================================================
# Login Tests
# ==========================================================================

class TestLogin:
    """Tests for user login endpoint."""

    async def test_login_success(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/login",
            json={"username": test_user.username, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == str(test_user.id)
        assert data["user"]["email"] == test_user.email
        assert data["token"]
        assert data["expires_at"]

    async def test_login_with_email(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/login",
            json={"username": test_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200

    async def test_login_wrong_password(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/login",
            json={"username": test_user.username, "password": "WrongPass123!"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    async def test_login_nonexistent_user(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login",
            json={"username": "nobody", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    async def test_login_token_works(self, client: AsyncClient, test_user: User):
        login = await client.post(
            "/api/auth/login",
            json={"username": test_user.username, "password": TEST_PASSWORD},
        )
        token = login.json()["token"]

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["username"] == test_user.username


# ==========================================================================
# Protected Route Tests
# ==========================================================================

class TestProtectedRoutes:
    """Tests for the bearer-token gate."""

    async def test_protected_route_without_token(self, client: AsyncClient):
        response = await client.get("/api/projects")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert "error" in response.json()

    async def test_protected_route_with_malformed_header(self, client: AsyncClient):
        response = await client.get("/api/projects", headers={"Authorization": "Token abc"})

        assert response.status_code == 401

    async def test_protected_route_with_invalid_token(self, client: AsyncClient):
        response = await client.get(
            "/api/projects",
            headers={"Authorization": "Bearer invalid-token"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    async def test_protected_route_with_expired_token(
        self, client: AsyncClient, test_user: User, settings: Settings
    ):
        expired = TokenManager(settings.SECRET_KEY, expires_in=timedelta(seconds=-10))
        token = expired.issue_token(test_user.id, test_user.username)

        response = await client.get(
            "/api/projects",
            headers={"Authorization": f"Bearer {token.token}"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Token expired"}

    async def test_rejected_request_has_no_side_effects(self, client: AsyncClient):
        response = await client.post("/api/projects", json={"name": "Sneaky"})

        assert response.status_code == 401

    async def test_token_of_deleted_user_cannot_create(self, client: AsyncClient, services: Services):
        registered = await client.post(
            "/api/auth/register",
            json={"username": unique_username(), "email": unique_email(), "password": "ValidPass123!"},
        )
        headers = {"Authorization": f"Bearer {registered.json()['token']}"}
        await services.users.delete(UUID(registered.json()["user"]["id"]))

        response = await client.post("/api/projects", headers=headers, json={"name": "Haunted"})

        assert response.status_code == 401
        assert response.json() == {"error": "User no longer exists"}

    async def test_health_is_public(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"


# ==========================================================================
# Token & Password Tests
# ==========================================================================

class TestTokenRefresh:
    async def test_refresh_token_success(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/auth/refresh", headers=auth_headers)

        assert response.status_code == 200
        new_token = response.json()["token"]
        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"})
        assert me.status_code == 200

    async def test_refresh_token_invalid(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/refresh",
            headers={"Authorization": "Bearer nope"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    async def test_refresh_without_header(self, client: AsyncClient):
        response = await client.post("/api/auth/refresh")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_me_for_deleted_user(self, client: AsyncClient, services: Services):
        user = await services.users.create(unique_username(), unique_email(), "hash")
        token = services.auth.issue_token(user)
        await services.users.delete(user.id)

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token.token}"})

        assert response.status_code == 401
        assert response.json() == {"error": "User no longer exists"}


class TestChangePassword:
    async def test_change_password(self, client: AsyncClient, test_user: User, auth_headers: dict):
        response = await client.post(
            "/api/auth/change-password",
            headers=auth_headers,
            json={"old_password": TEST_PASSWORD, "new_password": "Another123!"},
        )

        assert response.status_code == 204
        login = await client.post(
            "/api/auth/login",
            json={"username": test_user.username, "password": "Another123!"},
        )
        assert login.status_code == 200

    async def test_change_password_wrong_current(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/auth/change-password",
            headers=auth_headers,
            json={"old_password": "Wrong123!", "new_password": "Another123!"},
        )

        assert response.status_code == 401
