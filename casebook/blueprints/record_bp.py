"""Record blueprint — CRUD for entries, decisions, journal entries and problem/solutions.

Routes:
    GET    /api/v1/projects/<pid>/<collection>     — newest first; ?tag=, ?type= (entries)
    POST   /api/v1/projects/<pid>/<collection>     — insert
    GET    /api/v1/<collection>/<id>               — one record
    PUT    /api/v1/<collection>/<id>               — full-record update
    DELETE /api/v1/<collection>/<id>               — hard delete (screenshot file too)

    POST   /api/v1/projects/<pid>/screenshots      — multipart: file + caption/tags/location/created_at
    PUT    /api/v1/screenshots/<id>                — multipart; file optional

<collection> is one of: entries, decisions, journal_entries, problem_solutions
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from casebook.services import record_service
from casebook.services.user_service import current_auth
from casebook.utils.helpers import db_commit_or_error

logger = logging.getLogger(__name__)

record_bp = Blueprint("record_bp", __name__, url_prefix="/api/v1")

_COLLECTION = "<any(entries, decisions, journal_entries, problem_solutions):collection>"
_FORM_FIELDS = ("caption", "content", "tags", "location", "created_at")


def _form_payload() -> dict:
    return {k: request.form[k] for k in _FORM_FIELDS if k in request.form}


# ---------------------------------------------------------------------------
# Screenshots (multipart)
# ---------------------------------------------------------------------------


@record_bp.route("/projects/<int:project_id>/screenshots", methods=["POST"])
def create_screenshot(project_id: int):
    entry = record_service.create_screenshot(
        current_auth(), project_id, request.files.get("file"), _form_payload()
    )
    return jsonify(entry.to_dict()), 201


@record_bp.route("/screenshots/<int:entry_id>", methods=["PUT"])
def update_screenshot(entry_id: int):
    entry = record_service.update_screenshot(
        current_auth(), entry_id, _form_payload(), request.files.get("file")
    )
    return jsonify(entry.to_dict()), 200


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@record_bp.route(f"/projects/<int:project_id>/{_COLLECTION}", methods=["GET"])
def list_records(project_id: int, collection: str):
    tag = (request.args.get("tag") or "").strip() or None
    entry_type = request.args.get("type") or None
    rows = record_service.list_records(
        current_auth(), collection, project_id, tag=tag, entry_type=entry_type
    )
    return jsonify({"items": [r.to_dict() for r in rows], "total": len(rows)}), 200


@record_bp.route(f"/projects/<int:project_id>/{_COLLECTION}", methods=["POST"])
def create_record(project_id: int, collection: str):
    data = request.get_json(silent=True) or {}
    row = record_service.create_record(current_auth(), collection, project_id, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(row.to_dict()), 201


# ---------------------------------------------------------------------------
# Single resource
# ---------------------------------------------------------------------------


@record_bp.route(f"/{_COLLECTION}/<int:record_id>", methods=["GET"])
def get_record(collection: str, record_id: int):
    row = record_service.get_record(current_auth(), collection, record_id)
    return jsonify(row.to_dict()), 200


@record_bp.route(f"/{_COLLECTION}/<int:record_id>", methods=["PUT"])
def update_record(collection: str, record_id: int):
    data = request.get_json(silent=True) or {}
    row = record_service.update_record(current_auth(), collection, record_id, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(row.to_dict()), 200


@record_bp.route(f"/{_COLLECTION}/<int:record_id>", methods=["DELETE"])
def delete_record(collection: str, record_id: int):
    record_service.delete_record(current_auth(), collection, record_id)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Deleted"}), 200
