"""Authentication API tests."""

from app import db
from app.models import ProgressionAccount, User


class TestRegister:
    """Tests for password registration."""

    def test_register_creates_user_and_account(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"login_id": "lifter01", "password": "squat-rack", "display_name": "Lifter"},
        )

        assert response.status_code == 200
        data = response.json["data"]
        assert data["is_new_user"] is True
        assert "token" in data
        assert data["user"]["login_id"] == "lifter01"
        assert data["user"]["level"] == 1
        assert data["user"]["total_exp"] == 0

        user = User.query.filter_by(login_id="lifter01").first()
        assert ProgressionAccount.query.filter_by(user_id=user.id).count() == 1

    def test_register_rejects_short_password(self, client):
        response = client.post(
            "/api/v1/auth/register", json={"login_id": "lifter01", "password": "short"}
        )

        assert response.status_code == 400
        assert "password" in response.json["error"]["details"]

    def test_register_rejects_short_login_id(self, client):
        response = client.post(
            "/api/v1/auth/register", json={"login_id": "ab", "password": "password123"}
        )

        assert response.status_code == 400
        assert "login_id" in response.json["error"]["details"]

    def test_register_rejects_taken_login_id(self, client, test_user):
        response = client.post(
            "/api/v1/auth/register",
            json={"login_id": test_user["login_id"], "password": "password123"},
        )

        assert response.status_code == 400
        assert response.json["error"]["code"] == "VALIDATION_ERROR"

    def test_register_rejects_taken_email(self, client):
        client.post(
            "/api/v1/auth/register",
            json={"login_id": "first", "password": "password123", "email": "a@b.c"},
        )
        response = client.post(
            "/api/v1/auth/register",
            json={"login_id": "second", "password": "password123", "email": "a@b.c"},
        )

        assert response.status_code == 400
        assert "email" in response.json["error"]["details"]


class TestLogin:
    """Tests for password login."""

    def test_login_success(self, client, test_user):
        response = client.post(
            "/api/v1/auth/login",
            json={"login_id": test_user["login_id"], "password": "password123"},
        )

        assert response.status_code == 200
        data = response.json["data"]
        assert data["is_new_user"] is False
        assert data["user"]["id"] == test_user["id"]

    def test_login_wrong_password(self, client, test_user):
        response = client.post(
            "/api/v1/auth/login",
            json={"login_id": test_user["login_id"], "password": "wrong-password"},
        )

        assert response.status_code == 401

    def test_login_unknown_user(self, client):
        response = client.post(
            "/api/v1/auth/login", json={"login_id": "nobody", "password": "password123"}
        )

        assert response.status_code == 401


class TestDevAuth:
    """Tests for development authentication endpoint."""

    def test_dev_auth_creates_user(self, client):
        """Dev endpoint should create a new user with a progression account."""
        response = client.post("/api/v1/auth/dev", json={"login_id": "new_test_user"})

        assert response.status_code == 200
        data = response.json
        assert data["success"] is True
        assert "token" in data["data"]
        assert data["data"]["is_new_user"] is True
        assert data["data"]["user"]["login_id"] == "new_test_user"

        user_id = data["data"]["user"]["id"]
        assert ProgressionAccount.query.filter_by(user_id=user_id).count() == 1

    def test_dev_auth_returns_existing_user(self, client, test_user):
        """Dev endpoint should return existing user."""
        response = client.post(
            "/api/v1/auth/dev", json={"login_id": test_user["login_id"]}
        )

        assert response.status_code == 200
        data = response.json
        assert data["data"]["is_new_user"] is False
        assert data["data"]["user"]["id"] == test_user["id"]

    def test_dev_auth_disabled_outside_debug(self, app, client):
        app.debug = False

        response = client.post("/api/v1/auth/dev", json={"login_id": "someone"})

        assert response.status_code == 401
        assert User.query.filter_by(login_id="someone").first() is None


class TestGetCurrentUser:
    """Tests for getting current user."""

    def test_get_me_authenticated(self, auth_client):
        """Should return current user when authenticated."""
        response = auth_client.get("/api/v1/auth/me")

        assert response.status_code == 200
        data = response.json
        assert data["success"] is True
        assert data["data"]["user"]["login_id"] == "test_user"

    def test_get_me_unauthenticated(self, client):
        """Should return 401 when not authenticated."""
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401

    def test_get_me_deleted_user(self, auth_client, test_user):
        db.session.delete(db.session.get(User, test_user["id"]))
        db.session.commit()

        response = auth_client.get("/api/v1/auth/me")

        assert response.status_code == 401
