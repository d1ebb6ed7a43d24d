"""
App-level tests: page shell redirects, health probes, middleware headers,
error envelope and the create-user CLI command.
"""

import os

from casebook.middleware.security_headers import SECURITY_HEADERS
from casebook.models.auth import User


def _sign_in(client):
    client.post("/api/v1/auth/register",
                json={"email": "page@example.com", "password": "page-password"})


class TestPages:
    def test_index_redirects_to_login(self, client):
        res = client.get("/")
        assert res.status_code == 302
        assert res.headers["Location"].endswith("/login")

    def test_login_page_renders(self, client):
        res = client.get("/login")
        assert res.status_code == 200
        assert b"<form" in res.data

    def test_signed_in_index(self, client):
        _sign_in(client)
        res = client.get("/")
        assert res.status_code == 200
        assert b"page@example.com" in res.data

    def test_signed_in_login_redirects_home(self, client):
        _sign_in(client)
        res = client.get("/login")
        assert res.status_code == 302
        assert res.headers["Location"].endswith("/")


class TestHealth:
    def test_ready(self, client):
        assert client.get("/api/v1/health/ready").get_json() == {"status": "ok"}

    def test_live(self, client, upload_dir):
        os.makedirs(upload_dir, exist_ok=True)
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "ok"
        assert body["checks"]["storage"]["status"] == "ok"

    def test_live_degraded_without_upload_folder(self, client, upload_dir):
        assert not os.path.exists(upload_dir)
        res = client.get("/api/v1/health/live")
        assert res.status_code == 503
        assert res.get_json()["checks"]["storage"]["status"] == "error"


class TestMiddleware:
    def test_security_headers(self, client):
        res = client.get("/api/v1/health/ready")
        for name in SECURITY_HEADERS:
            assert name in res.headers
        assert res.headers["Cache-Control"] == "no-store"

    def test_request_id_echoed(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert float(res.headers["X-Request-Duration-Ms"]) >= 0

    def test_unknown_route_envelope(self, client, auth_headers):
        res = client.get("/api/v1/nothing-here", headers=auth_headers)
        assert res.status_code == 404
        body = res.get_json()
        assert body["code"] == "ERR_NOT_FOUND"
        assert body["details"] == {"path": "/api/v1/nothing-here"}

    def test_method_not_allowed(self, client, auth_headers):
        res = client.patch("/api/v1/projects", headers=auth_headers)
        assert res.status_code == 405


class TestCli:
    def test_create_user(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["create-user", "cli@example.com",
                                     "--password", "cli-password", "--name", "Cli"])
        assert result.exit_code == 0, result.output
        assert "Created user cli@example.com" in result.output
        assert User.query.filter_by(email="cli@example.com").one().full_name == "Cli"

    def test_create_user_duplicate(self, app, user):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["create-user", user.email, "--password", "whatever-pw"])
        assert result.exit_code != 0
        assert "already exists" in result.output
