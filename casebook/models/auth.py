"""
Accounts and refresh-token sessions.

Users own projects (and through them every record). A Session row stands
for one issued refresh token; only its SHA-256 digest is stored, and a
rotated or revoked token is kept with ``is_active = False``.
"""

import uuid
from datetime import datetime, timezone

from casebook.models import db
from casebook.models.base import _iso


def _now():
    return datetime.now(timezone.utc)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    full_name = db.Column(db.String(200))
    last_login_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now)

    sessions = db.relationship(
        "Session", back_populates="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    projects = db.relationship("Project", back_populates="owner", lazy="dynamic")

    def to_dict(self):
        """Public profile; never includes the password hash."""
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "created_at": _iso(self.created_at),
            "last_login_at": _iso(self.last_login_at),
        }


class Session(db.Model):
    __tablename__ = "sessions"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash = db.Column(db.String(64), nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now)
    last_used_at = db.Column(db.DateTime(timezone=True))
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.String(500))

    user = db.relationship("User", back_populates="sessions")

    @property
    def is_expired(self) -> bool:
        expires = self.expires_at
        # SQLite returns naive values; they were written as UTC
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return _now() >= expires
