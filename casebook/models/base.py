"""
OwnedModel — Abstract base class for project-scoped, user-owned records.

Every persisted entity (entry, decision, journal entry, problem/solution)
inherits from OwnedModel instead of db.Model directly. This adds:
  - project_id FK column (CASCADE on project delete) with index
  - user_id FK column with index
  - tags JSON column (ordered list of distinct strings)
  - created_at timestamp (user-editable through the wizards)
  - query_for_owner(user_id, project_id) classmethod
"""

from datetime import datetime, timezone

from casebook.models import db


def _iso(value):
    if not value:
        return None
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class OwnedModel(db.Model):
    """Abstract base for user-owned rows scoped to a project."""
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tags = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    @classmethod
    def query_for_owner(cls, user_id, project_id=None):
        """Return a query filtered by owner (and project, when given)."""
        q = cls.query.filter_by(user_id=user_id)
        if project_id is not None:
            q = q.filter_by(project_id=project_id)
        return q

    def base_dict(self) -> dict:
        """Columns shared by every owned record."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "tags": list(self.tags or []),
            "created_at": _iso(self.created_at),
        }
