"""Project blueprint — the sidebar and the project detail pane.

URL prefix: /api/v1/projects

Routes:
    GET    /api/v1/projects                    — own projects, oldest first
    POST   /api/v1/projects                    — create { name }
    GET    /api/v1/projects/<id>               — one project
    DELETE /api/v1/projects/<id>               — delete with every record and file
    GET    /api/v1/projects/<id>/timeline      — tag index + day-grouped collections
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from casebook.services import project_service, timeline_service
from casebook.services.user_service import current_auth
from casebook.utils.helpers import db_commit_or_error

logger = logging.getLogger(__name__)

project_bp = Blueprint("project_bp", __name__, url_prefix="/api/v1/projects")


@project_bp.route("", methods=["GET"])
def list_projects():
    auth = current_auth()
    projects = project_service.list_projects(auth)
    return jsonify({
        "items": [p.to_dict() for p in projects],
        "total": len(projects),
        "selected_project_id": project_service.default_selection(projects),
    }), 200


@project_bp.route("", methods=["POST"])
def create_project():
    """Create a project. Body: { "name": "..." }"""
    auth = current_auth()
    data = request.get_json(silent=True) or {}
    project = project_service.create_project(auth, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(project.to_dict()), 201


@project_bp.route("/<int:project_id>", methods=["GET"])
def get_project(project_id: int):
    project = project_service.get_project(current_auth(), project_id)
    return jsonify(project.to_dict()), 200


@project_bp.route("/<int:project_id>", methods=["DELETE"])
def delete_project(project_id: int):
    counts = project_service.delete_project(current_auth(), project_id)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Project deleted", "deleted": counts}), 200


@project_bp.route("/<int:project_id>/timeline", methods=["GET"])
def timeline(project_id: int):
    """Project detail view.

    Query params:
        tag — optional single-tag filter
    """
    tag = (request.args.get("tag") or "").strip() or None
    result = timeline_service.build_timeline(current_auth(), project_id, tag=tag)
    return jsonify(result), 200
