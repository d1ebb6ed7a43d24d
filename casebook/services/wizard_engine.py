"""
Stepped-form (wizard) engine.

A ``FormSession`` is the whole state of one Add/Edit wizard: the entity
kind, the current step, field values, per-field "add X" toggles and, when
editing, the record being edited. Every transition below is a pure
function that returns a new session and never mutates its input, so the
HTTP layer can keep the state on the client and replay it.

    advance      validate required fields of the current step, then step + 1
    back         step - 1 (no-op on step 1)
    toggle       flip one optional field's visibility
    set_value    update one field
    reset        initial state (empty, or re-derived from the edited record)
    sync_record  re-initialise when the edited record changed
    submit       review step only: validate, package, commit once, reset
    cancel       reset without committing

Toggles only control visibility; a value typed into a field that was later
hidden is still submitted.
"""

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime

from casebook.core.exceptions import ValidationError
from casebook.services.wizard_schemas import (
    DATETIME,
    SELECT,
    TAGS,
    FieldSpec,
    WizardSchema,
    get_schema,
)
from casebook.utils.helpers import clean_text, is_blank, parse_datetime, parse_tags, utcnow

ACTIONS = ("advance", "back", "toggle", "set", "reset", "cancel")


class InvalidTransition(ValueError):
    """A transition that the wizard cannot apply (bad field, wrong step)."""


@dataclass
class FormSession:
    kind: str
    step: int = 1
    values: dict = field(default_factory=dict)
    toggles: dict = field(default_factory=dict)
    record_id: int | None = None
    record: dict | None = None

    @property
    def schema(self) -> WizardSchema:
        return get_schema(self.kind)

    @property
    def is_edit(self) -> bool:
        return self.record_id is not None

    @property
    def is_review(self) -> bool:
        return self.step == self.schema.review_step

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "step": self.step,
            "total_steps": self.schema.total_steps,
            "is_review": self.is_review,
            "values": copy.deepcopy(self.values),
            "toggles": dict(self.toggles),
            "record_id": self.record_id,
            "record": copy.deepcopy(self.record),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FormSession":
        """Rebuild a session posted back by a client, rejecting unknown shapes."""
        if not isinstance(data, dict):
            raise InvalidTransition("state must be an object")
        schema = get_schema(data.get("kind"))

        try:
            step = int(data.get("step", 1))
        except (TypeError, ValueError):
            raise InvalidTransition("step must be an integer") from None
        if not 1 <= step <= schema.total_steps:
            raise InvalidTransition(f"step must be between 1 and {schema.total_steps}")

        values = data.get("values") or {}
        toggles = data.get("toggles") or {}
        if not isinstance(values, dict) or not isinstance(toggles, dict):
            raise InvalidTransition("values and toggles must be objects")
        unknown = set(values) - set(schema.field_map)
        if unknown:
            raise InvalidTransition(f"Unknown fields: {', '.join(sorted(unknown))}")
        toggle_names = {f.name for f in schema.toggle_fields}
        unknown = set(toggles) - toggle_names
        if unknown:
            raise InvalidTransition(f"Unknown toggles: {', '.join(sorted(unknown))}")

        session = initial_state(schema)
        session.step = step
        for name, value in values.items():
            session.values[name] = _coerce(schema.field_map[name], value)
        for name in toggle_names:
            session.toggles[name] = bool(toggles.get(name, False))
        session.record_id, session.record = _edit_target(data)
        return session


def _edit_target(data: dict) -> tuple:
    """``(record_id, record)`` of a posted edit state; both or neither."""
    record_id = data.get("record_id")
    record = data.get("record")
    if record_id is None and record is None:
        return None, None
    # bool is an int subclass
    if not isinstance(record_id, int) or isinstance(record_id, bool):
        raise InvalidTransition("record_id must be an integer")
    if not isinstance(record, dict):
        raise InvalidTransition("record must be an object")
    if record.get("id") != record_id:
        raise InvalidTransition("record_id does not match record")
    return record_id, record


# ═════════════════════════════════════════════════════════════════════════════
# Initial states
# ═════════════════════════════════════════════════════════════════════════════

def initial_state(schema: WizardSchema | str) -> FormSession:
    """Step 1, every toggle off, every field empty."""
    if isinstance(schema, str):
        schema = get_schema(schema)
    return FormSession(
        kind=schema.kind,
        step=1,
        values={f.name: f.empty_value() for f in schema.fields},
        toggles={f.name: False for f in schema.toggle_fields},
    )


def state_from_record(schema: WizardSchema | str, record: dict) -> FormSession:
    """Edit state: fields pre-populated from a serialized record.

    Optional fields that already hold a value start with their toggle on so
    the stored value is visible.
    """
    if isinstance(schema, str):
        schema = get_schema(schema)
    session = initial_state(schema)
    for f in schema.fields:
        raw = record.get(f.record_key)
        # Rows written by the old edit dialog carry a single "solution"
        if f.name == "chosen_solution" and is_blank(raw):
            raw = record.get("solution")
        if raw is None:
            continue
        session.values[f.name] = _coerce(f, raw)
    for f in schema.toggle_fields:
        session.toggles[f.name] = not is_blank(session.values.get(f.name))
    session.record_id = record.get("id")
    session.record = copy.deepcopy(record)
    return session


# ═════════════════════════════════════════════════════════════════════════════
# Transitions
# ═════════════════════════════════════════════════════════════════════════════

def _clone(session: FormSession, **changes) -> FormSession:
    return replace(
        session,
        values=copy.deepcopy(changes.pop("values", session.values)),
        toggles=dict(changes.pop("toggles", session.toggles)),
        record=copy.deepcopy(changes.pop("record", session.record)),
        **changes,
    )


def _label(spec: FieldSpec) -> str:
    return spec.name.replace("_", " ").capitalize()


def validate_required(session: FormSession, step: int | None = None) -> None:
    """Raise ValidationError if a required field (of ``step``, or any) is blank."""
    missing = [
        f for f in session.schema.required_fields(step)
        if is_blank(session.values.get(f.name))
    ]
    if missing:
        raise ValidationError(
            f"{_label(missing[0])} is required.",
            details={f.name: "required" for f in missing},
        )


def advance(session: FormSession) -> FormSession:
    if session.is_review:
        return session
    validate_required(session, session.step)
    return _clone(session, step=session.step + 1)


def back(session: FormSession) -> FormSession:
    if session.step <= 1:
        return session
    return _clone(session, step=session.step - 1)


def toggle(session: FormSession, field_name: str) -> FormSession:
    if field_name not in session.toggles:
        raise InvalidTransition(f"{field_name!r} has no visibility toggle")
    toggles = dict(session.toggles)
    toggles[field_name] = not toggles[field_name]
    return _clone(session, toggles=toggles)


def set_value(session: FormSession, field_name: str, value) -> FormSession:
    spec = session.schema.get_field(field_name)
    if spec is None:
        raise InvalidTransition(f"Unknown field: {field_name!r}")
    values = copy.deepcopy(session.values)
    values[field_name] = _coerce(spec, value)
    return _clone(session, values=values)


def reset(session: FormSession) -> FormSession:
    if session.is_edit:
        return state_from_record(session.schema, session.record)
    return initial_state(session.schema)


def cancel(session: FormSession) -> FormSession:
    return reset(session)


def sync_record(session: FormSession, record: dict) -> FormSession:
    """Re-initialise an edit session when the record it edits has changed."""
    if session.record == record:
        return session
    return state_from_record(session.schema, record)


def package(session: FormSession, now: datetime | None = None) -> dict:
    """Collected values keyed by record attribute, ready for an insert/update."""
    schema = session.schema
    payload = {}
    for f in schema.fields:
        value = session.values.get(f.name)
        if f.kind == TAGS:
            payload[f.record_key] = parse_tags(value)
        elif f.kind == DATETIME:
            payload[f.record_key] = parse_datetime(value) or (now or utcnow())
        elif isinstance(value, str):
            payload[f.record_key] = clean_text(value)
        else:
            payload[f.record_key] = value
    if schema.entry_type:
        payload["type"] = schema.entry_type
    return payload


def submit(session: FormSession, commit, now: datetime | None = None):
    """Commit the wizard once and return ``(commit_result, reset_state)``.

    ``commit`` is called as ``commit(payload, session)``. If it raises, the
    exception propagates and the caller keeps its unchanged session.

    When editing, the reset state is rebuilt from the record ``commit``
    returns (a dict or a row with ``to_dict()``), so the next edit starts
    from the saved values rather than the pre-edit ones.
    """
    if not session.is_review:
        raise InvalidTransition("Submit is only available on the review step")
    validate_required(session)
    result = commit(package(session, now=now), session)
    if session.is_edit:
        saved = result.to_dict() if hasattr(result, "to_dict") else result
        if isinstance(saved, dict):
            return result, state_from_record(session.schema, saved)
    return result, reset(session)


def apply_action(session: FormSession, action: str, field_name: str | None = None, value=None) -> FormSession:
    """Dispatch a named transition (used by the JSON surface)."""
    if action == "advance":
        return advance(session)
    if action == "back":
        return back(session)
    if action == "toggle":
        return toggle(session, field_name)
    if action == "set":
        return set_value(session, field_name, value)
    if action == "reset":
        return reset(session)
    if action == "cancel":
        return cancel(session)
    raise InvalidTransition(f"Unknown action {action!r}; expected one of {', '.join(ACTIONS)}")


# ── Value coercion ───────────────────────────────────────────────────────────

def _coerce(spec: FieldSpec, value):
    if spec.kind == TAGS:
        return parse_tags(value)
    if value is None or (isinstance(value, str) and not value.strip()):
        return spec.empty_value()
    if spec.kind == SELECT:
        if value not in spec.options:
            raise InvalidTransition(
                f"{spec.name} must be one of: {', '.join(spec.options)}"
            )
        return value
    if spec.kind == DATETIME:
        try:
            return parse_datetime(value).isoformat()
        except ValueError as exc:
            raise InvalidTransition(str(exc)) from exc
    if not isinstance(value, str):
        raise InvalidTransition(f"{spec.name} must be a string")
    return value
