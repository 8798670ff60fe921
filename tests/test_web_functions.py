"""Tests for the account function endpoints."""

from transported.core.auth import create_user
from transported.db.users_repository import get_user_by_email


class TestCreateUserFunction:
    """Tests for POST /functions/v1/create-user."""

    def test_creates_confirmed_user(self, client):
        response = client.post(
            "/functions/v1/create-user",
            json={"email": "new@example.com", "password": "secret123", "name": "New"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "User created and confirmed successfully"
        assert data["user"]["email"] == "new@example.com"
        assert data["user"]["email_confirmed_at"] is not None
        assert "password_hash" not in data["user"]

    def test_duplicate_email(self, client):
        body = {"email": "dup@example.com", "password": "secret123", "name": "Dup"}
        client.post("/functions/v1/create-user", json=body)

        response = client.post("/functions/v1/create-user", json=body)
        assert response.status_code == 409
        assert "already exists" in response.json()["error"]

    def test_short_password(self, client):
        response = client.post(
            "/functions/v1/create-user",
            json={"email": "s@example.com", "password": "123", "name": "S"},
        )
        assert response.status_code == 422
        assert "error" in response.json()

    def test_missing_fields(self, client):
        response = client.post("/functions/v1/create-user", json={"email": "x@example.com"})
        assert response.status_code == 422


class TestConfirmUserFunction:
    """Tests for POST /functions/v1/confirm-user."""

    def test_confirms_user(self, client):
        create_user("late@example.com", "secret123", "Late", email_confirmed=False)

        response = client.post("/functions/v1/confirm-user", json={"email": "late@example.com"})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "User confirmed successfully"
        assert get_user_by_email("late@example.com").is_confirmed

    def test_unknown_email(self, client):
        response = client.post("/functions/v1/confirm-user", json={"email": "ghost@example.com"})
        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}
