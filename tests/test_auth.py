"""
Auth tests.

Tests cover:
  - JWT token generation / verification / expiry
  - Auth API: register, login, refresh (rotation), logout, me
  - The access-token cookie used by the page shell
  - 401 on protected routes without a valid token
"""

import jwt as pyjwt
import pytest

from casebook.core.exceptions import AuthenticationError, ConflictError, ValidationError
from casebook.models import db as _db
from casebook.models.auth import Session, User
from casebook.services.jwt_service import (
    decode_access_token,
    decode_refresh_token,
    generate_access_token,
    generate_token_pair,
)
from casebook.services.user_service import authenticate_user, create_user, normalize_email


def _register(client, email="lin@example.com", password="s3cure-enough", **extra):
    return client.post("/api/v1/auth/register",
                       json={"email": email, "password": password, **extra})


def _login(client, email="lin@example.com", password="s3cure-enough"):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


# ═══════════════════════════════════════════════════════════════
# TOKENS
# ═══════════════════════════════════════════════════════════════

class TestTokens:
    def test_access_token_payload(self):
        payload = decode_access_token(generate_access_token(5, "a@example.com"))
        assert payload["sub"] == "5"
        assert payload["email"] == "a@example.com"
        assert payload["type"] == "access"

    def test_refresh_token_is_not_an_access_token(self):
        tokens = generate_token_pair(5)
        with pytest.raises(pyjwt.InvalidTokenError):
            decode_access_token(tokens["refresh_token"])
        assert decode_refresh_token(tokens["refresh_token"])["sub"] == "5"

    def test_expired_token(self, app):
        app.config["JWT_ACCESS_TOKEN_EXPIRES"] = -1
        try:
            token = generate_access_token(5)
        finally:
            app.config["JWT_ACCESS_TOKEN_EXPIRES"] = 900
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_token_pair_shape(self):
        tokens = generate_token_pair(1, "x@example.com")
        assert tokens["token_type"] == "Bearer"
        assert tokens["expires_in"] == 900
        assert len(tokens["token_hash"]) == 64


# ═══════════════════════════════════════════════════════════════
# USER SERVICE
# ═══════════════════════════════════════════════════════════════

class TestUserService:
    def test_email_is_normalised(self):
        user = create_user("  Mixed.Case@Example.COM ", "long-enough-pw")
        assert user.email == normalize_email("mixed.case@example.com")
        assert user.password_hash != "long-enough-pw"

    def test_duplicate_email(self, user):
        with pytest.raises(ConflictError):
            create_user(user.email, "another-password")

    def test_short_password(self):
        with pytest.raises(ValidationError):
            create_user("short@example.com", "1234567")

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            create_user("not-an-email", "long-enough-pw")

    def test_authenticate(self, user):
        assert authenticate_user("ada@example.com", "correct-horse-battery").id == user.id
        assert _db.session.get(User, user.id).last_login_at is not None
        with pytest.raises(AuthenticationError):
            authenticate_user("ada@example.com", "wrong")
        with pytest.raises(AuthenticationError):
            authenticate_user("nobody@example.com", "whatever-pw")


# ═══════════════════════════════════════════════════════════════
# API
# ═══════════════════════════════════════════════════════════════

class TestRegisterLogin:
    def test_register(self, client):
        res = _register(client, full_name="Lin")
        assert res.status_code == 201
        data = res.get_json()
        assert data["user"]["email"] == "lin@example.com"
        assert data["user"]["full_name"] == "Lin"
        assert data["token_type"] == "Bearer"
        assert "casebook_access_token=" in res.headers["Set-Cookie"]
        assert "HttpOnly" in res.headers["Set-Cookie"]

    def test_register_duplicate(self, client):
        _register(client)
        res = _register(client)
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"

    def test_register_short_password(self, client):
        res = _register(client, password="short")
        assert res.status_code == 422

    def test_login(self, client):
        _register(client)
        res = _login(client)
        assert res.status_code == 200
        assert res.get_json()["access_token"]
        assert Session.query.filter_by(is_active=True).count() == 2

    def test_login_wrong_password(self, client):
        _register(client)
        res = _login(client, password="nope-nope-nope")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"

    def test_login_missing_fields(self, client):
        res = client.post("/api/v1/auth/login", json={"email": "lin@example.com"})
        assert res.status_code == 400


class TestSessionLifecycle:
    def test_refresh_rotates(self, client):
        refresh_token = _register(client).get_json()["refresh_token"]

        res = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert res.status_code == 200
        new_refresh = res.get_json()["refresh_token"]
        assert new_refresh != refresh_token

        # The old token was single-use
        again = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert again.status_code == 401

    def test_refresh_with_garbage(self, client):
        res = client.post("/api/v1/auth/refresh", json={"refresh_token": "abc"})
        assert res.status_code == 401

    def test_refresh_requires_token(self, client):
        res = client.post("/api/v1/auth/refresh", json={})
        assert res.status_code == 400

    def test_logout_revokes_and_clears_cookie(self, client):
        data = _register(client).get_json()
        headers = {"Authorization": f"Bearer {data['access_token']}"}

        res = client.post("/api/v1/auth/logout", json={"refresh_token": data["refresh_token"]},
                          headers=headers)
        assert res.status_code == 200
        assert "casebook_access_token=;" in res.headers["Set-Cookie"]

        res = client.post("/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]})
        assert res.status_code == 401

    def test_logout_everywhere(self, client):
        data = _register(client).get_json()
        _login(client)
        headers = {"Authorization": f"Bearer {data['access_token']}"}
        client.post("/api/v1/auth/logout", headers=headers)
        assert Session.query.filter_by(is_active=True).count() == 0


class TestProtectedRoutes:
    def test_me_with_bearer(self, client, user, auth_headers):
        res = client.get("/api/v1/auth/me", headers=auth_headers)
        assert res.status_code == 200
        assert res.get_json()["user"]["id"] == user.id

    def test_me_with_cookie(self, client):
        _register(client)
        res = client.get("/api/v1/auth/me")
        assert res.status_code == 200
        assert res.get_json()["user"]["email"] == "lin@example.com"

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/v1/projects"),
        ("post", "/api/v1/projects"),
        ("get", "/api/v1/auth/me"),
        ("get", "/api/v1/wizards"),
        ("get", "/api/v1/entries/1"),
    ])
    def test_requires_token(self, client, method, path):
        res = getattr(client, method)(path)
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"

    def test_invalid_token(self, client):
        res = client.get("/api/v1/projects", headers={"Authorization": "Bearer not.a.jwt"})
        assert res.status_code == 401

    def test_health_is_public(self, client):
        assert client.get("/api/v1/health/ready").status_code == 200
