"""Shared utility functions used by services and blueprints.

parse_datetime:      user-editable created_at values (ISO 8601, "Z" suffix allowed)
parse_tags:          comma string or list → ordered, distinct, trimmed tags
is_blank:            the one "required field non-empty" rule
db_commit_or_error:  commit with rollback + logging, tuple-return on failure
"""
import logging
from datetime import date, datetime, time, timezone

from casebook.models import db

logger = logging.getLogger(__name__)


def is_blank(value) -> bool:
    """True for None, empty/whitespace strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value):
    """Parse a timestamp into an aware UTC datetime.

    Returns None for empty input and raises ValueError for garbage, so the
    caller decides between "use now()" and a 400 response. Accepts:
    - datetime (naive values are taken as UTC)
    - date (midnight UTC)
    - ISO 8601 strings, including the trailing "Z" that browsers emit
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(
                f"Invalid timestamp {value!r}. Use ISO 8601 (YYYY-MM-DDTHH:MM:SS)."
            ) from exc
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_tags(value) -> list[str]:
    """Normalise tags: split comma strings, trim, drop empties, dedupe in order.

    >>> parse_tags(" ui, nav ,, ui")
    ['ui', 'nav']
    """
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.split(",")
    elif isinstance(value, (list, tuple)):
        raw = []
        for item in value:
            if item is None:
                continue
            raw.extend(str(item).split(","))
    else:
        raise ValueError("tags must be a list or a comma-separated string")

    tags: list[str] = []
    for item in raw:
        tag = item.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def clean_text(value):
    """Strip a text value; empty strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def db_commit_or_error():
    """Commit ``db.session``; on failure roll back and return an error response.

        err = db_commit_or_error()
        if err:
            return err

    A constraint violation answers 409, anything else the database raises 500.
    """
    from sqlalchemy.exc import IntegrityError, SQLAlchemyError

    from casebook.utils.errors import E, api_error

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Commit rejected by a constraint: %s", exc.orig)
        return api_error(E.CONFLICT_DUPLICATE, "Conflicts with an existing record")
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Commit failed")
        return api_error(E.DATABASE, "Database error")
    return None
