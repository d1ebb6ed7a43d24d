"""
Shared pytest fixtures for the Case Study Builder test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate and a fresh upload folder (autouse)
    - client: Flask test client (function-scoped)
    - user / auth_headers: a registered account and its Bearer header
    - other_headers: a second account, for ownership checks
    - project: a project owned by ``user``
    - png_bytes / png_upload: a tiny valid PNG for screenshot uploads
"""

import io

import pytest

from casebook import create_app
from casebook.models import db as _db
from casebook.services.jwt_service import generate_token_pair
from casebook.services.user_service import AuthContext, create_user

# Smallest valid PNG (1x1, transparent)
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06"
    b"\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01"
    b"\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


def bearer(user) -> dict:
    tokens = generate_token_pair(user.id, user.email)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


def _png_upload(name="shot.png"):
    return (io.BytesIO(PNG_BYTES), name, "image/png")


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db, tmp_path):
    """Per-test: app context, private upload folder, tables recreated afterwards."""
    original_upload_folder = app.config["UPLOAD_FOLDER"]
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()
    app.config["UPLOAD_FOLDER"] = original_upload_folder


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def upload_dir(app):
    return app.config["UPLOAD_FOLDER"]


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def user():
    return create_user("ada@example.com", "correct-horse-battery", "Ada")


@pytest.fixture()
def auth(user):
    return AuthContext(user_id=user.id, email=user.email)


@pytest.fixture()
def auth_headers(user):
    return bearer(user)


@pytest.fixture()
def other_user():
    return create_user("grace@example.com", "another-long-password", "Grace")


@pytest.fixture()
def other_headers(other_user):
    return bearer(other_user)


@pytest.fixture()
def project(client, auth_headers):
    """Create and return a project owned by ``user`` via the API."""
    res = client.post("/api/v1/projects", json={"name": "Client Redesign"}, headers=auth_headers)
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def png_bytes():
    return PNG_BYTES


@pytest.fixture()
def png_upload():
    """Factory for a ``(stream, filename, mimetype)`` tuple usable as ``data={"file": ...}``."""
    return _png_upload
