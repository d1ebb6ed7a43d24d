"""
Case Study Builder — Flask application factory.

    from casebook import create_app
    app = create_app()            # APP_ENV or "development"
    app = create_app("testing")
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as sa_engine
from sqlalchemy import event as sa_event
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import RequestEntityTooLarge

from casebook.config import config
from casebook.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from casebook.middleware.jwt_auth import init_jwt_middleware
from casebook.middleware.logging_config import configure_logging
from casebook.middleware.rate_limiter import init_rate_limits
from casebook.middleware.security_headers import init_security_headers
from casebook.middleware.timing import init_request_timing
from casebook.models import db
from casebook.utils.errors import E, api_error

logger = logging.getLogger(__name__)

migrate = Migrate()
# Limits are attached per blueprint in init_rate_limits
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
)


@sa_event.listens_for(sa_engine.Engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, _record):
    # SQLite ignores ON DELETE CASCADE unless asked per connection
    if "sqlite" in type(dbapi_conn).__module__:
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


def _init_cors(app):
    origins = (app.config.get("CORS_ORIGINS") or "").strip()
    if origins == "*":
        CORS(app)
    elif origins:
        CORS(app, origins=[o.strip() for o in origins.split(",") if o.strip()],
             supports_credentials=True)


def _register_error_handlers(app):
    """Service exceptions → the JSON error envelope."""

    @app.errorhandler(ValidationError)
    def _validation(exc: ValidationError):
        # REQUIRED only when every reported field is a blank required field
        values = set(exc.details.values())
        code = E.VALIDATION_REQUIRED if values and values <= {"required"} else E.VALIDATION_INVALID
        return api_error(code, str(exc), status=422, details=exc.details)

    @app.errorhandler(NotFoundError)
    def _missing(exc: NotFoundError):
        logger.info("%s", exc)
        return api_error(E.NOT_FOUND, exc.public_message)

    @app.errorhandler(ConflictError)
    def _conflict(exc: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, f"{exc.resource} already exists",
                         details={exc.field: "duplicate"})

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(exc: AuthenticationError):
        return api_error(E.UNAUTHENTICATED, str(exc))

    @app.errorhandler(StorageError)
    def _storage(exc: StorageError):
        logger.error("Object store failure: %s", exc, extra={"object_path": exc.path})
        return api_error(E.STORAGE, "File storage is unavailable, please retry")

    @app.errorhandler(SQLAlchemyError)
    def _database(exc: SQLAlchemyError):
        db.session.rollback()
        logger.error("Database error on %s %s", request.method, request.path, exc_info=exc)
        return api_error(E.DATABASE, "Database error")

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(_exc):
        limit_mb = app.config["MAX_UPLOAD_BYTES"] // (1024 * 1024)
        return api_error(E.PAYLOAD_TOO_LARGE, f"Uploads are limited to {limit_mb} MB")

    @app.errorhandler(404)
    def _no_route(_exc):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def _bad_method(_exc):
        return api_error(E.VALIDATION_INVALID, f"{request.method} is not allowed here", status=405)

    @app.errorhandler(429)
    def _throttled(exc):
        return api_error(E.VALIDATION_INVALID, "Too many requests", status=429,
                         details={"limit": str(exc.description)})

    @app.errorhandler(500)
    def _internal(exc):
        logger.error("Unhandled error: %s", exc, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):
    @app.cli.command("create-user")
    @click.argument("email")
    @click.password_option()
    @click.option("--name", "full_name", default=None, help="Display name.")
    def create_user_cmd(email, password, full_name):
        """Create an account without going through /api/v1/auth/register."""
        from casebook.services.user_service import create_user

        try:
            user = create_user(email, password, full_name)
        except (ValidationError, ConflictError) as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Created user {user.email} (id={user.id})")


def create_app(config_name=None):
    """Build the app for ``config_name`` ("development", "testing" or "production")."""
    config_name = config_name or os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiated so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    _init_cors(app)

    # before_request runs timing then JWT; after_request runs in reverse order
    init_security_headers(app)
    init_request_timing(app)
    init_jwt_middleware(app)

    os.makedirs(app.instance_path, exist_ok=True)
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # Every model module must be imported before create_all / autogenerate
    from casebook.models import auth, project, records  # noqa: F401

    if app.config["TESTING"] or app.config["DEBUG"]:
        with app.app_context():
            db.create_all()

    from casebook.blueprints import ALL_BLUEPRINTS

    for bp in ALL_BLUEPRINTS:
        app.register_blueprint(bp)

    _register_error_handlers(app)
    _register_cli(app)
    init_rate_limits(app, limiter)

    return app
