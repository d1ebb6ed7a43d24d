"""initial_case_study_schema

Create users, sessions, projects and the four record collections
(entries, decisions, journal_entries, problem_solutions).

Revision ID: a1c4e7d2b9f0
Revises:
Create Date: 2026-10-18 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "a1c4e7d2b9f0"
down_revision = None
branch_labels = None
depends_on = None


RECORD_TABLES = ("entries", "decisions", "journal_entries", "problem_solutions")


def _owned_columns():
    """Columns every record table shares (id, owner, project, tags, created_at)."""
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    ]


def _owned_indexes(table):
    op.create_index(f"ix_{table}_project_id", table, ["project_id"])
    op.create_index(f"ix_{table}_user_id", table, ["user_id"])
    op.create_index(f"ix_{table}_created_at", table, ["created_at"])
    op.create_index(f"ix_{table}_project_created", table, ["project_id", "created_at"])


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("password_hash", sa.String(length=256), nullable=False),
            sa.Column("full_name", sa.String(length=200), nullable=True),
            sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if "sessions" not in existing_tables:
        op.create_table(
            "sessions",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("token_hash", sa.String(length=64), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False),
            sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("ip_address", sa.String(length=45), nullable=True),
            sa.Column("user_agent", sa.String(length=500), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_sessions_user_id", "sessions", ["user_id"])
        op.create_index("ix_sessions_token_hash", "sessions", ["token_hash"])

    if "projects" not in existing_tables:
        op.create_table(
            "projects",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_projects_user_id", "projects", ["user_id"])
        op.create_index("ix_projects_user_created", "projects", ["user_id", "created_at"])

    if "entries" not in existing_tables:
        op.create_table(
            "entries",
            *_owned_columns(),
            sa.Column("type", sa.String(length=20), nullable=False),
            sa.Column("content", sa.Text(), nullable=True),
            sa.Column("file_url", sa.String(length=1000), nullable=True),
            sa.Column("location", sa.String(length=500), nullable=True),
            sa.CheckConstraint(
                "(type = 'screenshot' AND file_url IS NOT NULL) OR "
                "(type = 'note' AND file_url IS NULL)",
                name="ck_entries_type_file_url",
            ),
        )
        _owned_indexes("entries")
        op.create_index("ix_entries_type", "entries", ["type"])

    if "decisions" not in existing_tables:
        op.create_table(
            "decisions",
            *_owned_columns(),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("summary", sa.Text(), nullable=True),
            sa.Column("context", sa.Text(), nullable=True, comment="Problem / context"),
            sa.Column("alternatives", sa.Text(), nullable=True, comment="Alternatives considered"),
            sa.Column("rationale", sa.Text(), nullable=True, comment="Why this decision?"),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="Proposed"),
        )
        _owned_indexes("decisions")

    if "journal_entries" not in existing_tables:
        op.create_table(
            "journal_entries",
            *_owned_columns(),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("mood", sa.String(length=30), nullable=True),
        )
        _owned_indexes("journal_entries")

    if "problem_solutions" not in existing_tables:
        op.create_table(
            "problem_solutions",
            *_owned_columns(),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("problem_description", sa.Text(), nullable=True),
            sa.Column("occurrence_location", sa.String(length=500), nullable=True),
            sa.Column("possible_solutions", sa.Text(), nullable=True),
            sa.Column("chosen_solution", sa.Text(), nullable=True),
            sa.Column("outcome", sa.Text(), nullable=True),
        )
        _owned_indexes("problem_solutions")


def downgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing_tables = set(inspector.get_table_names())

    for table in reversed(RECORD_TABLES):
        if table in existing_tables:
            op.drop_table(table)
    for table in ("projects", "sessions", "users"):
        if table in existing_tables:
            op.drop_table(table)
