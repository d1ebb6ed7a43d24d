"""
Record Service — CRUD for the four per-project collections.

    entries            notes and screenshots
    decisions
    journal_entries
    problem_solutions

Rows are created by one insert, changed only by full-record updates and
removed by a hard delete. Screenshot files are managed here too: an upload
followed by an insert, and file removal before the row is deleted.

Plain CRUD functions flush and leave the commit to the caller. The
screenshot functions commit themselves because they have to know whether
the insert after an upload succeeded.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from casebook.core.exceptions import NotFoundError, StorageError, ValidationError
from casebook.models import db
from casebook.models.records import (
    COLLECTIONS,
    DECISION_STATUSES,
    DEFAULT_DECISION_STATUS,
    ENTRY_TYPES,
    MODEL_BY_COLLECTION,
    MOODS,
    Entry,
)
from casebook.services.project_service import get_project
from casebook.services.storage_service import build_object_path, get_store, is_image
from casebook.services.user_service import AuthContext
from casebook.utils.helpers import clean_text, is_blank, parse_datetime, parse_tags, utcnow

logger = logging.getLogger(__name__)

# Editable text columns per collection, and which of them must be non-empty
TEXT_FIELDS = {
    "entries": ("content", "location"),
    "decisions": ("title", "summary", "context", "alternatives", "rationale"),
    "journal_entries": ("content",),
    "problem_solutions": (
        "title",
        "problem_description",
        "occurrence_location",
        "possible_solutions",
        "chosen_solution",
        "outcome",
    ),
}
REQUIRED_FIELDS = {
    "entries": (),
    "decisions": ("title",),
    "journal_entries": ("content",),
    "problem_solutions": ("title",),
}

RESOURCE_NAMES = {
    "entries": "Entry",
    "decisions": "Decision",
    "journal_entries": "Journal entry",
    "problem_solutions": "Problem/solution",
}


def get_model(collection: str):
    try:
        return MODEL_BY_COLLECTION[collection]
    except KeyError:
        raise NotFoundError(resource="Collection", resource_id=collection) from None


# ═════════════════════════════════════════════════════════════════════════════
# Payload normalisation
# ═════════════════════════════════════════════════════════════════════════════

def normalize_payload(collection: str, data: dict, *, creating: bool,
                      entry_type: str | None = None) -> dict:
    """Validate and clean a full-record payload.

    ``entry_type`` is the stored type of the entry being updated; on create
    it comes from the payload. Notes must carry content, screenshots need not.

    Raises:
        ValidationError: a required field is blank or a value is out of range.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    data = dict(data)

    # Older problem/solution rows and clients send a single "solution"
    if collection == "problem_solutions" and is_blank(data.get("chosen_solution")):
        if not is_blank(data.get("solution")):
            data["chosen_solution"] = data["solution"]

    clean = {name: clean_text(data.get(name)) for name in TEXT_FIELDS[collection]}

    required = list(REQUIRED_FIELDS[collection])
    if collection == "entries":
        if creating:
            entry_type = clean_text(data.get("type")) or "note"
        if entry_type == "note":
            required.append("content")

    missing = [name for name in required if not clean.get(name)]
    if missing:
        raise ValidationError(
            f"{missing[0].replace('_', ' ').capitalize()} is required.",
            details={name: "required" for name in missing},
        )

    try:
        clean["tags"] = parse_tags(data.get("tags"))
    except ValueError as exc:
        raise ValidationError(str(exc), details={"tags": "invalid"}) from exc

    try:
        created_at = parse_datetime(data.get("created_at"))
    except ValueError as exc:
        raise ValidationError(str(exc), details={"created_at": "invalid"}) from exc
    if created_at is not None:
        clean["created_at"] = created_at
    elif creating:
        clean["created_at"] = utcnow()

    if collection == "decisions":
        status = clean_text(data.get("status")) or DEFAULT_DECISION_STATUS
        if status not in DECISION_STATUSES:
            raise ValidationError(
                f"Status must be one of: {', '.join(DECISION_STATUSES)}",
                details={"status": "invalid"},
            )
        clean["status"] = status

    if collection == "journal_entries":
        mood = clean_text(data.get("mood"))
        if mood is not None and mood not in MOODS:
            raise ValidationError(
                f"Mood must be one of: {', '.join(MOODS)}",
                details={"mood": "invalid"},
            )
        clean["mood"] = mood

    if collection == "entries" and creating:
        entry_type = clean_text(data.get("type")) or "note"
        if entry_type not in ENTRY_TYPES:
            raise ValidationError(
                f"Type must be one of: {', '.join(ENTRY_TYPES)}",
                details={"type": "invalid"},
            )
        clean["type"] = entry_type

    return clean


# ═════════════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════════════

def list_records(auth: AuthContext, collection: str, project_id: int,
                 tag: str | None = None, entry_type: str | None = None) -> list:
    """Newest-first rows of one collection, optionally narrowed by tag / entry type."""
    model = get_model(collection)
    get_project(auth, project_id)
    query = model.query_for_owner(auth.user_id, project_id)
    if entry_type and collection == "entries":
        query = query.filter(Entry.type == entry_type)
    rows = query.order_by(model.created_at.desc(), model.id.desc()).all()
    if tag:
        rows = [r for r in rows if tag in (r.tags or [])]
    return rows


def get_record(auth: AuthContext, collection: str, record_id: int):
    """Fetch one row owned by ``auth``; foreign rows are reported as missing."""
    model = get_model(collection)
    row = db.session.get(model, record_id)
    if not row or row.user_id != auth.user_id:
        raise NotFoundError(
            resource=RESOURCE_NAMES[collection], resource_id=record_id, user_id=auth.user_id
        )
    return row


def create_record(auth: AuthContext, collection: str, project_id: int, data: dict):
    """Insert a row. Screenshots must go through ``create_screenshot``."""
    model = get_model(collection)
    project = get_project(auth, project_id)
    clean = normalize_payload(collection, data, creating=True)
    if collection == "entries" and clean["type"] == "screenshot":
        raise ValidationError(
            "Screenshots are created by uploading an image file.",
            details={"file": "required"},
        )

    row = model(project_id=project.id, user_id=auth.user_id, **clean)
    db.session.add(row)
    db.session.flush()
    logger.info("Created %s id=%s", collection, row.id,
                extra={"user_id": auth.user_id, "project_id": project.id})
    return row


def update_record(auth: AuthContext, collection: str, record_id: int, data: dict):
    """Full-record update: every editable field is replaced by the payload.

    An entry keeps its type and its file_url; a screenshot's file is only
    replaced through ``update_screenshot``.
    """
    row = get_record(auth, collection, record_id)
    clean = normalize_payload(collection, data, creating=False,
                              entry_type=getattr(row, "type", None))
    for key, value in clean.items():
        setattr(row, key, value)
    db.session.flush()
    return row


def delete_record(auth: AuthContext, collection: str, record_id: int) -> None:
    """Hard delete. A screenshot's file is removed before its row."""
    row = get_record(auth, collection, record_id)
    if collection == "entries" and row.file_url:
        store = get_store()
        path = store.path_from_public_url(row.file_url)
        if path:
            store.remove([path])
    db.session.delete(row)
    db.session.flush()
    logger.info("Deleted %s id=%s", collection, record_id,
                extra={"user_id": auth.user_id, "project_id": row.project_id})


# ═════════════════════════════════════════════════════════════════════════════
# Screenshots (upload + row)
# ═════════════════════════════════════════════════════════════════════════════

def _check_upload(upload) -> None:
    if upload is None or not getattr(upload, "filename", ""):
        raise ValidationError("Image is required.", details={"image": "required"})
    if not is_image(upload.mimetype):
        raise ValidationError("Only image uploads are accepted", details={"image": "invalid"})


def _store_upload(auth: AuthContext, project_id: int, upload) -> str:
    store = get_store()
    object_path = build_object_path(auth.user_id, project_id, upload.filename)
    store.upload(object_path, upload.stream, upload.mimetype)
    return store.get_public_url(object_path)


def create_screenshot(auth: AuthContext, project_id: int, upload, data: dict) -> Entry:
    """Upload the image, then insert the entry that points at it.

    The two steps are not transactional: if the insert fails the stored file
    stays behind and is only logged.
    """
    project = get_project(auth, project_id)
    _check_upload(upload)
    payload = dict(data or {})
    payload["type"] = "screenshot"
    if "caption" in payload and "content" not in payload:
        payload["content"] = payload.pop("caption")
    clean = normalize_payload("entries", payload, creating=True)

    file_url = _store_upload(auth, project.id, upload)
    try:
        entry = Entry(project_id=project.id, user_id=auth.user_id, file_url=file_url, **clean)
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Screenshot insert failed; orphaned file left at %s", file_url,
                         extra={"user_id": auth.user_id, "project_id": project.id})
        raise
    logger.info("Created screenshot id=%s", entry.id,
                extra={"user_id": auth.user_id, "project_id": project.id})
    return entry


def update_screenshot(auth: AuthContext, entry_id: int, data: dict, upload=None) -> Entry:
    """Full update of a screenshot entry; a new image replaces the old file."""
    entry = get_record(auth, "entries", entry_id)
    if entry.type != "screenshot":
        raise ValidationError("Entry is not a screenshot", details={"type": "invalid"})
    payload = dict(data or {})
    if "caption" in payload and "content" not in payload:
        payload["content"] = payload.pop("caption")
    clean = normalize_payload("entries", payload, creating=False)

    old_url = entry.file_url
    if upload is not None and getattr(upload, "filename", ""):
        _check_upload(upload)
        entry.file_url = _store_upload(auth, entry.project_id, upload)
    for key, value in clean.items():
        setattr(entry, key, value)

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        if entry.file_url != old_url:
            logger.exception("Screenshot update failed; orphaned file left behind",
                             extra={"user_id": auth.user_id, "project_id": entry.project_id})
        raise

    if entry.file_url != old_url:
        store = get_store()
        old_path = store.path_from_public_url(old_url)
        if old_path:
            try:
                store.remove([old_path])
            except StorageError:
                logger.exception("Could not remove replaced screenshot file",
                                 extra={"object_path": old_path})
    return entry


# ═════════════════════════════════════════════════════════════════════════════
# Wizard commit
# ═════════════════════════════════════════════════════════════════════════════

def save_from_wizard(auth: AuthContext, project_id: int, collection: str,
                     payload: dict, record_id: int | None = None, upload=None):
    """Commit callback for a submitted wizard: insert, or full update when editing.

    Commits before returning.
    """
    if collection not in COLLECTIONS:
        raise NotFoundError(resource="Collection", resource_id=collection)
    is_screenshot = payload.get("type") == "screenshot"

    if record_id is None:
        if is_screenshot:
            return create_screenshot(auth, project_id, upload, payload)
        row = create_record(auth, collection, project_id, payload)
    else:
        existing = get_record(auth, collection, record_id)
        if existing.project_id != project_id:
            raise NotFoundError(resource=RESOURCE_NAMES[collection], resource_id=record_id)
        if is_screenshot:
            return update_screenshot(auth, record_id, payload, upload)
        row = update_record(auth, collection, record_id, payload)

    db.session.commit()
    return row
