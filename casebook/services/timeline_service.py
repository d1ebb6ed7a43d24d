"""
Timeline Service — the project detail view.

Fetches the four collections of a project, builds the combined tag index,
groups every collection by calendar day and applies the optional
single-tag filter.

Grouping is a strict partition: each item lands in exactly one day-group
and groups keep the order in which their first item appears in the
(newest-first) input. Filtering by tag and grouping commute.
"""

import logging
import random
from datetime import timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app

from casebook.models.records import COLLECTIONS
from casebook.services.project_service import get_project
from casebook.services.record_service import list_records
from casebook.services.user_service import AuthContext
from casebook.utils.helpers import parse_datetime

logger = logging.getLogger(__name__)

EMPTY_STATE_MESSAGES = (
    "This project is empty.",
    "Nothing here yet. Capture your first note.",
    "A blank page. Every case study starts somewhere.",
    "No entries yet. Add a note, a screenshot or a decision.",
    "Quiet in here. Log what you worked on today.",
)


def resolve_timezone(name: str | None):
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown DISPLAY_TIMEZONE %r, falling back to UTC", name)
        return timezone.utc


def _created_at(item):
    value = item["created_at"] if isinstance(item, dict) else item.created_at
    return parse_datetime(value)


def _tags(item) -> list:
    tags = item.get("tags") if isinstance(item, dict) else item.tags
    return list(tags or [])


def day_label(dt, tz=timezone.utc) -> str:
    """Calendar day of ``dt`` in ``tz`` as "March 4, 2025"."""
    local = parse_datetime(dt).astimezone(tz)
    return f"{local:%B} {local.day}, {local.year}"


def group_by_day(items, tz=timezone.utc) -> list[dict]:
    """Partition items into ``[{"date": label, "items": [...]}, ...]``."""
    groups: dict[str, list] = {}
    for item in items:
        groups.setdefault(day_label(_created_at(item), tz), []).append(item)
    return [{"date": label, "items": members} for label, members in groups.items()]


def filter_by_tag(items, tag: str | None) -> list:
    """Items carrying ``tag``; no tag means no filtering."""
    if not tag:
        return list(items)
    return [item for item in items if tag in _tags(item)]


def tag_index(*collections) -> list[str]:
    """Sorted, distinct tags across every given collection."""
    tags = set()
    for items in collections:
        for item in items:
            tags.update(_tags(item))
    return sorted(tags)


def empty_state_message(rng=None) -> str:
    return (rng or random).choice(EMPTY_STATE_MESSAGES)


def merge_newest_first(*collections) -> list:
    merged = [item for items in collections for item in items]
    merged.sort(key=_created_at, reverse=True)
    return merged


def build_timeline(auth: AuthContext, project_id: int, tag: str | None = None,
                   tz_name: str | None = None, rng=None) -> dict:
    """Everything the project detail pane shows, as plain dicts."""
    project = get_project(auth, project_id)
    if tz_name is None:
        tz_name = current_app.config.get("DISPLAY_TIMEZONE", "UTC")
    tz = resolve_timezone(tz_name)

    raw = {
        collection: [row.to_dict() for row in list_records(auth, collection, project.id)]
        for collection in COLLECTIONS
    }
    tags = tag_index(*raw.values())

    views = {
        "entries": raw["entries"],
        "notes": [e for e in raw["entries"] if e["type"] == "note"],
        "screenshots": [e for e in raw["entries"] if e["type"] == "screenshot"],
        "decisions": raw["decisions"],
        "journal_entries": raw["journal_entries"],
        "problem_solutions": raw["problem_solutions"],
    }
    views["all"] = merge_newest_first(*(raw[c] for c in COLLECTIONS))

    groups = {}
    empty_states = {}
    for name, items in views.items():
        filtered = filter_by_tag(items, tag)
        groups[name] = group_by_day(filtered, tz)
        if not filtered:
            empty_states[name] = empty_state_message(rng)

    return {
        "project": project.to_dict(),
        "tag": tag or None,
        "tags": tags,
        "timezone": tz_name,
        "groups": groups,
        "counts": {name: sum(len(g["items"]) for g in grouped) for name, grouped in groups.items()},
        "empty_states": empty_states,
    }
