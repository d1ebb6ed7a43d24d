"""Project CRUD service with strict per-user ownership checks."""

from __future__ import annotations

import logging

from casebook.core.exceptions import NotFoundError, ValidationError
from casebook.models import db
from casebook.models.project import Project
from casebook.models.records import MODEL_BY_COLLECTION, Entry
from casebook.services.storage_service import get_store
from casebook.services.user_service import AuthContext

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200


def list_projects(auth: AuthContext) -> list[Project]:
    """The user's projects, oldest first (sidebar order)."""
    return (
        Project.query
        .filter(Project.user_id == auth.user_id)
        .order_by(Project.created_at.asc(), Project.id.asc())
        .all()
    )


def default_selection(projects: list[Project]) -> int | None:
    """A lone project is selected automatically; otherwise nothing is."""
    return projects[0].id if len(projects) == 1 else None


def get_project(auth: AuthContext, project_id: int) -> Project:
    """Fetch a project owned by ``auth``; a foreign project is reported as missing."""
    project = db.session.get(Project, project_id)
    if not project or project.user_id != auth.user_id:
        raise NotFoundError(resource="Project", resource_id=project_id, user_id=auth.user_id)
    return project


def create_project(auth: AuthContext, data: dict) -> Project:
    name = str(data.get("name", "") or "").strip()
    if not name:
        raise ValidationError("Project name is required.", details={"name": "required"})
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Project name must be at most {MAX_NAME_LENGTH} characters.",
            details={"name": "too_long"},
        )

    project = Project(user_id=auth.user_id, name=name)
    db.session.add(project)
    db.session.flush()
    logger.info("Project created", extra={"user_id": auth.user_id, "project_id": project.id})
    return project


def delete_project(auth: AuthContext, project_id: int) -> dict:
    """Delete a project, its rows in every collection and its uploaded files.

    Files go first, mirroring single-screenshot deletion; the caller commits.
    Returns per-collection counts of deleted rows.
    """
    project = get_project(auth, project_id)

    file_urls = [
        url for (url,) in db.session.query(Entry.file_url)
        .filter(Entry.project_id == project.id, Entry.file_url.isnot(None))
        .all()
    ]
    store = get_store()
    paths = [p for p in (store.path_from_public_url(u) for u in file_urls) if p]
    if paths:
        store.remove(paths)

    counts = {}
    for collection, model in MODEL_BY_COLLECTION.items():
        counts[collection] = (
            model.query
            .filter(model.project_id == project.id)
            .delete(synchronize_session=False)
        )
    db.session.delete(project)
    db.session.flush()
    logger.info(
        "Project deleted with %d file(s)", len(paths),
        extra={"user_id": auth.user_id, "project_id": project_id},
    )
    return counts
