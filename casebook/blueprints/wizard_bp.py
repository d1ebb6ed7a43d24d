"""Wizard blueprint — stateless JSON surface over the stepped-form engine.

The client holds the FormSession (as returned by these endpoints) and posts
it back with every transition.

Routes:
    GET  /api/v1/wizards                                   — every schema
    GET  /api/v1/wizards/<kind>                            — schema + initial create state
    GET  /api/v1/wizards/<kind>/records/<id>               — initial edit state from a record
    POST /api/v1/wizards/<kind>/transition                 — { state, action, field?, value? }
    POST /api/v1/projects/<pid>/wizards/<kind>/submit      — { state } or multipart state + file
"""

from __future__ import annotations

import json
import logging

from flask import Blueprint, jsonify, request

from casebook.services import record_service, wizard_engine
from casebook.services.user_service import current_auth
from casebook.services.wizard_schemas import SCHEMAS, get_schema
from casebook.utils.errors import E, api_error

logger = logging.getLogger(__name__)

wizard_bp = Blueprint("wizard_bp", __name__, url_prefix="/api/v1")


@wizard_bp.errorhandler(ValueError)
def _handle_bad_transition(error: ValueError):
    # Unknown kind, unknown field, bad step or a submit off the review step
    return api_error(E.VALIDATION_INVALID, str(error))


def _load_state(kind: str, raw) -> wizard_engine.FormSession:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise wizard_engine.InvalidTransition("state is not valid JSON") from None
    session = wizard_engine.FormSession.from_dict(raw)
    if session.kind != kind:
        raise wizard_engine.InvalidTransition(
            f"state belongs to the {session.kind!r} wizard, not {kind!r}"
        )
    return session


@wizard_bp.route("/wizards", methods=["GET"])
def list_wizards():
    return jsonify({"items": [s.to_dict() for s in SCHEMAS.values()]}), 200


@wizard_bp.route("/wizards/<kind>", methods=["GET"])
def get_wizard(kind: str):
    schema = get_schema(kind)
    return jsonify({
        "schema": schema.to_dict(),
        "state": wizard_engine.initial_state(schema).to_dict(),
    }), 200


@wizard_bp.route("/wizards/<kind>/records/<int:record_id>", methods=["GET"])
def edit_wizard(kind: str, record_id: int):
    """Open an edit wizard on a stored record."""
    schema = get_schema(kind)
    row = record_service.get_record(current_auth(), schema.collection, record_id)
    record = row.to_dict()
    if schema.entry_type and record.get("type") != schema.entry_type:
        return api_error(
            E.VALIDATION_INVALID,
            f"Record is a {record.get('type')}, not a {schema.entry_type}",
        )
    return jsonify({
        "schema": schema.to_dict(),
        "state": wizard_engine.state_from_record(schema, record).to_dict(),
    }), 200


@wizard_bp.route("/wizards/<kind>/transition", methods=["POST"])
def transition(kind: str):
    """Apply one transition.

    Body: { "state": {...}, "action": "advance|back|toggle|set|reset|cancel",
            "field": "...", "value": ... }

    A failed required-field check answers 422 and the client keeps its state.
    """
    data = request.get_json(silent=True) or {}
    session = _load_state(kind, data.get("state"))
    new_state = wizard_engine.apply_action(
        session, data.get("action"), data.get("field"), data.get("value")
    )
    return jsonify({"state": new_state.to_dict()}), 200


@wizard_bp.route("/projects/<int:project_id>/wizards/<kind>/submit", methods=["POST"])
def submit(project_id: int, kind: str):
    """Submit a wizard on its review step: insert, or update when editing.

    JSON body: { "state": {...} }
    Multipart: state=<json>, file=<image> (screenshot create / replace)
    """
    auth = current_auth()
    if request.mimetype == "multipart/form-data":
        raw_state = request.form.get("state")
        upload = request.files.get("file")
    else:
        raw_state = (request.get_json(silent=True) or {}).get("state")
        upload = None
    session = _load_state(kind, raw_state)
    schema = session.schema

    def _commit(payload, form_session):
        return record_service.save_from_wizard(
            auth,
            project_id,
            schema.collection,
            payload,
            record_id=form_session.record_id,
            upload=upload,
        )

    row, reset_state = wizard_engine.submit(session, _commit)
    return jsonify({
        "record": row.to_dict(),
        "state": reset_state.to_dict(),
    }), 200 if session.is_edit else 201
