"""
Auth Blueprint — account and session endpoints.

  POST /api/v1/auth/register    — { email, password, full_name? } → 201 + tokens
  POST /api/v1/auth/login       — { email, password } → tokens
  POST /api/v1/auth/refresh     — { refresh_token } → rotated tokens
  POST /api/v1/auth/logout      — { refresh_token? } → revoke one or every session
  GET  /api/v1/auth/me          — signed-in user

Every response that issues tokens also sets the HttpOnly access-token cookie
the page shell authenticates with.
"""

import logging

import jwt as pyjwt
from flask import Blueprint, current_app, jsonify, request

from casebook.core.exceptions import AuthenticationError, NotFoundError
from casebook.services import jwt_service
from casebook.services.user_service import (
    authenticate_user,
    create_user,
    current_auth,
    get_user_by_id,
)
from casebook.utils.errors import E, api_error

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")


def _client_info() -> tuple[str | None, str]:
    return request.remote_addr, request.headers.get("User-Agent", "")


def _with_cookie(user, tokens, status):
    resp = jsonify({
        "user": user.to_dict(),
        "access_token": tokens["access_token"],
        "refresh_token": tokens["refresh_token"],
        "token_type": tokens["token_type"],
        "expires_in": tokens["expires_in"],
    })
    resp.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        tokens["access_token"],
        max_age=tokens["expires_in"],
        secure=current_app.config.get("AUTH_COOKIE_SECURE", False),
        httponly=True,
        samesite="Lax",
    )
    return resp, status


def _sign_in(user, status):
    tokens = jwt_service.generate_token_pair(user.id, user.email)
    jwt_service.create_session(user.id, tokens, *_client_info())
    return _with_cookie(user, tokens, status)


# ── Register / login ─────────────────────────────────────────────────────


@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    user = create_user(data.get("email", ""), data.get("password", ""), data.get("full_name"))
    return _sign_in(user, 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return api_error(E.VALIDATION_INVALID, "Email and password are required")

    return _sign_in(authenticate_user(email, password), 200)


# ── Refresh (rotation) ───────────────────────────────────────────────────


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    """Trade a refresh token for a new pair; the presented token is retired."""
    raw = (request.get_json(silent=True) or {}).get("refresh_token") or ""
    if not raw:
        return api_error(E.VALIDATION_INVALID, "Refresh token is required")

    try:
        user_id = int(jwt_service.decode_refresh_token(raw)["sub"])
    except (pyjwt.InvalidTokenError, KeyError, ValueError):
        raise AuthenticationError("Invalid or expired refresh token") from None

    session = jwt_service.get_active_session_by_token(user_id, jwt_service.hash_token(raw))
    if session is None:
        logger.warning("Refresh with unknown or revoked token", extra={"user_id": user_id})
        raise AuthenticationError("Session not found or revoked")
    if session.is_expired:
        jwt_service.revoke_session(session)
        raise AuthenticationError("Session expired")

    try:
        user = get_user_by_id(user_id)
    except NotFoundError:
        jwt_service.revoke_session(session)
        raise AuthenticationError("User not found") from None

    tokens = jwt_service.generate_token_pair(user.id, user.email)
    jwt_service.rotate_session(session, tokens, *_client_info())
    return _with_cookie(user, tokens, 200)


# ── Logout / me ──────────────────────────────────────────────────────────


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """Revoke the given refresh token, or every session when none is sent."""
    auth = current_auth()
    raw = (request.get_json(silent=True) or {}).get("refresh_token") or ""
    if raw:
        jwt_service.revoke_session_by_token(jwt_service.hash_token(raw), user_id=auth.user_id)
    else:
        jwt_service.revoke_all_user_sessions(auth.user_id)

    resp = jsonify({"message": "Logged out"})
    resp.delete_cookie(current_app.config["AUTH_COOKIE_NAME"])
    return resp, 200


@auth_bp.route("/me", methods=["GET"])
def me():
    try:
        user = get_user_by_id(current_auth().user_id)
    except NotFoundError:
        raise AuthenticationError("User no longer exists") from None
    return jsonify({"user": user.to_dict()}), 200
