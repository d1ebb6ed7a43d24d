"""
Case Study Builder settings, one class per environment.

``create_app(name)`` picks ``config[name]`` (APP_ENV when no name is given,
"development" when APP_ENV is unset). Anything secret or host-specific
comes from the environment.
"""

import os
import secrets
import tempfile

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
instance_dir = os.path.join(basedir, "instance")


def _database_url(fallback=None):
    url = os.getenv("DATABASE_URL")
    if not url:
        return fallback
    # Heroku-style URLs; SQLAlchemy 2 only knows the postgresql:// scheme
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def _env_int(name, default):
    return int(os.getenv(name, str(default)))


class Config:
    # A throwaway key keeps dev sessions valid until the process restarts
    SECRET_KEY = os.getenv("SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Tokens (seconds)
    JWT_ACCESS_TOKEN_EXPIRES = _env_int("JWT_ACCESS_TOKEN_EXPIRES", 15 * 60)
    JWT_REFRESH_TOKEN_EXPIRES = _env_int("JWT_REFRESH_TOKEN_EXPIRES", 7 * 24 * 3600)
    AUTH_COOKIE_NAME = "casebook_access_token"
    AUTH_COOKIE_SECURE = False

    # Screenshot bucket on local disk, served under /storage/<bucket>/
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(instance_dir, "uploads"))
    STORAGE_BUCKET = "project_files"
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")
    MAX_UPLOAD_BYTES = _env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
    MAX_CONTENT_LENGTH = MAX_UPLOAD_BYTES

    # Zone used for the "March 4, 2025" day-group labels
    DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "UTC")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(
        "sqlite:///" + os.path.join(instance_dir, "casebook_dev.db")
    )


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "casebook-tests-only"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    # conftest points this at a per-test tmp_path
    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), "casebook-test-uploads")
    PUBLIC_BASE_URL = "http://localhost"
    DISPLAY_TIMEZONE = "UTC"


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url()
    AUTH_COOKIE_SECURE = True
    # No wildcard in production; an empty value disables cross-origin access
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": _env_int("DB_POOL_SIZE", 5),
        "max_overflow": 10,
        "pool_recycle": 300,
    }

    def __init__(self):
        missing = [
            name for name, value in (
                ("DATABASE_URL", self.SQLALCHEMY_DATABASE_URI),
                ("SECRET_KEY", os.getenv("SECRET_KEY")),
            )
            if not value
        ]
        if missing:
            raise RuntimeError(f"Production requires: {', '.join(missing)}")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
