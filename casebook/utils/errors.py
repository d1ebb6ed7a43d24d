"""JSON error envelope shared by every API route.

    {"error": "<message for humans>", "code": "ERR_...", "details": {...}}

``details`` is only present when there is something field-level to report,
e.g. ``{"title": "required"}``.

    from casebook.utils.errors import E, api_error
    return api_error(E.NOT_FOUND, "Project not found")
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Machine-readable error codes."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"   # a required field is blank
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"     # malformed or out-of-range value
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    NOT_FOUND = "ERR_NOT_FOUND"                       # also used for rows owned by someone else
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    PAYLOAD_TOO_LARGE = "ERR_PAYLOAD_TOO_LARGE"
    UNSUPPORTED_MEDIA = "ERR_UNSUPPORTED_MEDIA"
    DATABASE = "ERR_DATABASE"
    STORAGE = "ERR_STORAGE"                           # object store failed
    INTERNAL = "ERR_INTERNAL"


STATUS_BY_CODE: dict[str, int] = {
    E.VALIDATION_REQUIRED: 422,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHENTICATED: 401,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.PAYLOAD_TOO_LARGE: 413,
    E.UNSUPPORTED_MEDIA: 415,
    E.DATABASE: 500,
    E.STORAGE: 502,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """``(response, status)`` for ``code``; ``status`` overrides the code's default."""
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or STATUS_BY_CODE.get(code, 400)
