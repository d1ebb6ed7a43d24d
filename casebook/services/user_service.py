"""
User Service — registration, password login and the explicit auth context.

Every data-access service takes an ``AuthContext`` argument instead of
reaching into ``flask.g``; blueprints build it once per request with
``current_auth()``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from email_validator import EmailNotValidError, validate_email
from flask import g

from casebook.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from casebook.models import db
from casebook.models.auth import User
from casebook.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class AuthContext:
    """The signed-in user a service call acts on behalf of."""

    user_id: int
    email: str | None = None


def current_auth() -> AuthContext:
    """Build the AuthContext for the current request.

    Raises:
        AuthenticationError: when the JWT middleware found no valid token.
    """
    user_id = getattr(g, "jwt_user_id", None)
    if user_id is None:
        raise AuthenticationError()
    return AuthContext(user_id=user_id, email=getattr(g, "jwt_email", None))


def normalize_email(email: str) -> str:
    try:
        valid = validate_email((email or "").strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid email: {exc}", details={"email": "invalid"}) from exc
    return valid.normalized.lower()


# ═══════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════
def create_user(email: str, password: str, full_name: str | None = None) -> User:
    """Register a new account.

    Raises:
        ValidationError: bad email or a password shorter than 8 characters.
        ConflictError: the email is already registered.
    """
    email = normalize_email(email)
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"password": "too_short"},
        )
    if User.query.filter_by(email=email).first():
        raise ConflictError("User", "email", email)

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=(full_name or "").strip() or None,
    )
    db.session.add(user)
    db.session.commit()
    logger.info("User registered", extra={"user_id": user.id})
    return user


def get_user_by_id(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


def get_user_by_email(email: str) -> User | None:
    return User.query.filter_by(email=(email or "").strip().lower()).first()


def authenticate_user(email: str, password: str) -> User:
    """Authenticate a user with email + password. Returns User on success."""
    user = get_user_by_email(email)
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise AuthenticationError("Invalid email or password")

    user.last_login_at = datetime.now(timezone.utc)
    db.session.commit()
    return user
