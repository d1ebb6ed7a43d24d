"""
JWT Service — signed tokens and the refresh-session table behind them.

Two HS256 tokens are issued per sign-in:

    access   short-lived (JWT_ACCESS_TOKEN_EXPIRES, 15 min); Bearer header or page cookie
    refresh  long-lived (JWT_REFRESH_TOKEN_EXPIRES, 7 days); single use, rotated on refresh

Claims: ``sub`` (user id as a string), ``type``, ``iat``, ``exp``, ``jti`` and,
on access tokens, ``email``. Only the SHA-256 digest of a refresh token is
persisted in ``sessions``.
"""

import hashlib
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from casebook.models import db
from casebook.models.auth import Session

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"

_TTL_KEYS = {
    ACCESS: ("JWT_ACCESS_TOKEN_EXPIRES", 900),
    REFRESH: ("JWT_REFRESH_TOKEN_EXPIRES", 604800),
}


def _signing_key() -> str:
    cfg = current_app.config
    return cfg.get("JWT_SECRET_KEY") or cfg["SECRET_KEY"]


def _ttl(token_type: str) -> int:
    key, default = _TTL_KEYS[token_type]
    return int(current_app.config.get(key, default))


def _encode(user_id: int, token_type: str, **claims) -> tuple[str, datetime]:
    issued = datetime.now(timezone.utc)
    expires = issued + timedelta(seconds=_ttl(token_type))
    # PyJWT 2.10+ rejects non-string subjects
    body = {
        "sub": str(user_id),
        "type": token_type,
        "iat": issued,
        "exp": expires,
        "jti": uuid.uuid4().hex,
        **claims,
    }
    return jwt.encode(body, _signing_key(), algorithm=ALGORITHM), expires


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ═══════════════════════════════════════════════════════════════
# Issue / verify
# ═══════════════════════════════════════════════════════════════

def generate_access_token(user_id: int, email: str | None = None) -> str:
    claims = {"email": email} if email else {}
    token, _ = _encode(user_id, ACCESS, **claims)
    return token


def generate_token_pair(user_id: int, email: str | None = None) -> dict:
    """Access + refresh token for one sign-in.

    ``token_hash`` and ``expires_at`` describe the refresh token and are what
    ``create_session`` / ``rotate_session`` store.
    """
    refresh_token, refresh_expires = _encode(user_id, REFRESH)
    return {
        "access_token": generate_access_token(user_id, email),
        "refresh_token": refresh_token,
        "token_hash": hash_token(refresh_token),
        "expires_at": refresh_expires,
        "token_type": "Bearer",
        "expires_in": _ttl(ACCESS),
    }


def decode_token(token: str, expected_type: str = ACCESS) -> dict:
    """Verified claims of ``token``.

    Raises:
        jwt.InvalidTokenError: bad signature, expired (ExpiredSignatureError)
            or a token of the other type.
    """
    claims = jwt.decode(token, _signing_key(), algorithms=[ALGORITHM])
    if claims.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"not an {expected_type} token")
    return claims


def decode_access_token(token: str) -> dict:
    return decode_token(token, ACCESS)


def decode_refresh_token(token: str) -> dict:
    return decode_token(token, REFRESH)


# ═══════════════════════════════════════════════════════════════
# Refresh sessions
# ═══════════════════════════════════════════════════════════════

def _new_session(user_id: int, tokens: dict, ip_address, user_agent) -> Session:
    session = Session(
        user_id=user_id,
        token_hash=tokens["token_hash"],
        expires_at=tokens["expires_at"],
        ip_address=ip_address,
        user_agent=(user_agent or "")[:500],
    )
    db.session.add(session)
    return session


def create_session(user_id: int, tokens: dict, ip_address=None, user_agent=None) -> Session:
    """Store the refresh half of ``tokens`` (a ``generate_token_pair`` result)."""
    session = _new_session(user_id, tokens, ip_address, user_agent)
    db.session.commit()
    return session


def get_active_session_by_token(user_id: int, token_hash: str) -> Session | None:
    return (
        Session.query
        .filter_by(user_id=user_id, token_hash=token_hash, is_active=True)
        .first()
    )


def rotate_session(old: Session, tokens: dict, ip_address=None, user_agent=None) -> Session:
    """Retire ``old`` and store the new refresh token in the same commit."""
    old.is_active = False
    old.last_used_at = datetime.now(timezone.utc)
    session = _new_session(old.user_id, tokens, ip_address, user_agent)
    db.session.commit()
    return session


def revoke_session(session: Session) -> None:
    session.is_active = False
    db.session.commit()


def revoke_session_by_token(token_hash: str, user_id: int | None = None) -> bool:
    """Revoke the active session holding ``token_hash``. False when none matched."""
    query = Session.query.filter_by(token_hash=token_hash, is_active=True)
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    session = query.first()
    if session is None:
        return False
    revoke_session(session)
    return True


def revoke_all_user_sessions(user_id: int) -> int:
    """Sign out everywhere. Returns the number of sessions revoked."""
    count = (
        Session.query
        .filter_by(user_id=user_id, is_active=True)
        .update({"is_active": False})
    )
    db.session.commit()
    return count
