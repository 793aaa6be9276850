"""Tests for registration, login and the auth dependency."""

from datetime import timedelta

from jose import jwt

import config
from models import utcnow
from conftest import auth_headers


def _register(client, username="carol", email="carol@example.com", password="passw0rdX"):
    return client.post("/auth/register", json={"username": username, "email": email, "password": password})


class TestRegister:

    def test_register_returns_token_and_user(self, client):
        response = _register(client)
        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == "carol"
        assert "password_hash" not in data["user"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.json()["email"] == "carol@example.com"

    def test_duplicate_username(self, client):
        _register(client)
        response = _register(client, email="other@example.com")
        assert response.status_code == 400
        assert response.json()["detail"] == "Username already taken"

    def test_duplicate_email(self, client):
        _register(client)
        response = _register(client, username="carol2", email="CAROL@example.com")
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_weak_password(self, client):
        assert _register(client, password="short").status_code == 400

    def test_bad_email(self, client):
        assert _register(client, email="carol-at-example").status_code == 400


class TestLogin:

    def test_login_with_email(self, client):
        _register(client)
        response = client.post("/auth/login", json={"email": "carol@example.com", "password": "passw0rdX"})
        assert response.status_code == 200
        assert response.json()["user"]["username"] == "carol"

    def test_wrong_password(self, client):
        _register(client)
        response = client.post("/auth/login", json={"email": "carol@example.com", "password": "nope12345"})
        assert response.status_code == 401

    def test_unknown_user(self, client):
        response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "passw0rdX"})
        assert response.status_code == 401


class TestCurrentUser:

    def test_me(self, client, alice):
        response = client.get("/auth/me", headers=auth_headers(alice))
        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_expired_token_rejected(self, client, alice):
        past = utcnow() - timedelta(hours=2)
        token = jwt.encode(
            {"sub": str(alice.id), "iat": past, "exp": past + timedelta(minutes=5)},
            config.SECRET_KEY,
            algorithm=config.ALGORITHM,
        )
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_token_for_unknown_user_rejected(self, client):
        headers = {"Authorization": f"Bearer {jwt.encode({'sub': '999'}, config.SECRET_KEY, algorithm=config.ALGORITHM)}"}
        assert client.get("/auth/me", headers=headers).status_code == 401

    def test_inactive_user_rejected(self, client, db, alice):
        alice.is_active = False
        db.commit()
        assert client.get("/auth/me", headers=auth_headers(alice)).status_code == 401
