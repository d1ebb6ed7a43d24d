"""
Health probes (no authentication).

    GET /api/v1/health/ready  — process is up
    GET /api/v1/health/live   — database reachable and upload folder writable; 503 otherwise
"""

import logging
import os
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from casebook.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


def _check_database() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(db.text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Liveness: database unreachable: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


def _check_upload_folder() -> dict:
    folder = current_app.config["UPLOAD_FOLDER"]
    if not os.path.isdir(folder):
        return {"status": "error", "detail": "upload folder is missing"}
    if not os.access(folder, os.W_OK):
        return {"status": "error", "detail": "upload folder is not writable"}
    return {"status": "ok"}


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    checks = {
        "database": _check_database(),
        "storage": _check_upload_folder(),
    }
    healthy = all(c["status"] == "ok" for c in checks.values())
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
    }), 200 if healthy else 503
