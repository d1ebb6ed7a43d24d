"""Project model — root of ownership for every case-study record."""

from datetime import datetime, timezone

from casebook.models import db
from casebook.models.base import _iso


class Project(db.Model):
    """A case study; owns entries, decisions, journal entries and problem/solutions."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    owner = db.relationship("User", back_populates="projects")

    __table_args__ = (
        db.Index("ix_projects_user_created", "user_id", "created_at"),
    )

    def to_dict(self) -> dict:
        """Serialize project fields for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
        }
