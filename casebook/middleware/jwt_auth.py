"""
JWT Auth Middleware — resolves the signed-in user for every request.

Token sources, in order:
  1. Authorization: Bearer <token>   (API clients)
  2. The HttpOnly access-token cookie set by /api/v1/auth/login (page shell)

On success ``g.jwt_user_id`` / ``g.jwt_email`` are set. Every /api/v1/*
route outside JWT_SKIP_PREFIXES then requires a user and gets a 401
otherwise. Pages do their own redirect to /login.
"""

import jwt as pyjwt
from flask import current_app, g, request

from casebook.services.jwt_service import decode_access_token
from casebook.utils.errors import E, api_error


# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/auth/register",
    "/api/v1/auth/refresh",
    "/api/v1/health",
    "/static/",
    "/storage/",
)


def _token_from_request() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.jwt_email = None

        token = _token_from_request()
        if token:
            try:
                payload = decode_access_token(token)
                g.jwt_user_id = int(payload["sub"])
                g.jwt_email = payload.get("email")
            except (pyjwt.InvalidTokenError, KeyError, ValueError):
                g.jwt_user_id = None

        path = request.path
        if request.method == "OPTIONS" or not path.startswith("/api/v1/"):
            return None
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return None

        if g.jwt_user_id is None:
            return api_error(E.UNAUTHENTICATED, "Authentication required")
        return None
