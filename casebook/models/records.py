"""
Case-study record models.

    - Entry: a note or a screenshot (with a backing file in the object store)
    - Decision: design decision with context, alternatives and rationale
    - JournalEntry: free-form daily log with an optional mood
    - ProblemSolution: problem write-up with candidate and chosen solutions

Architecture chain: User → Project → Entry / Decision / JournalEntry / ProblemSolution
"""

from casebook.models import db
from casebook.models.base import OwnedModel


# ── Constants ────────────────────────────────────────────────────────────────

ENTRY_TYPES = ("note", "screenshot")

DECISION_STATUSES = ("Proposed", "In Progress", "Final", "Revisited")
DEFAULT_DECISION_STATUS = "Proposed"

MOODS = ("happy", "neutral", "frustrated", "productive", "thoughtful")

# Collection name → model, used by services and blueprints.
COLLECTIONS = ("entries", "decisions", "journal_entries", "problem_solutions")


# ═════════════════════════════════════════════════════════════════════════════
# ENTRY (note | screenshot)
# ═════════════════════════════════════════════════════════════════════════════

class Entry(OwnedModel):
    """A note or a screenshot.

    A screenshot always carries a file_url; a note never does.
    """

    __tablename__ = "entries"

    type = db.Column(db.String(20), nullable=False, default="note", index=True)
    content = db.Column(db.Text, nullable=True)
    file_url = db.Column(db.String(1000), nullable=True)
    location = db.Column(db.String(500), nullable=True)

    __table_args__ = (
        db.CheckConstraint(
            "(type = 'screenshot' AND file_url IS NOT NULL) OR "
            "(type = 'note' AND file_url IS NULL)",
            name="ck_entries_type_file_url",
        ),
        db.Index("ix_entries_project_created", "project_id", "created_at"),
    )

    def to_dict(self):
        d = self.base_dict()
        d.update({
            "kind": self.type,
            "type": self.type,
            "content": self.content,
            "file_url": self.file_url,
            "location": self.location,
        })
        return d


# ═════════════════════════════════════════════════════════════════════════════
# DECISION
# ═════════════════════════════════════════════════════════════════════════════

class Decision(OwnedModel):
    """A design / product decision record."""

    __tablename__ = "decisions"

    title = db.Column(db.String(300), nullable=False)
    summary = db.Column(db.Text, nullable=True)
    context = db.Column(db.Text, nullable=True, comment="Problem / context")
    alternatives = db.Column(db.Text, nullable=True, comment="Alternatives considered")
    rationale = db.Column(db.Text, nullable=True, comment="Why this decision?")
    status = db.Column(db.String(30), nullable=False, default=DEFAULT_DECISION_STATUS)

    __table_args__ = (
        db.Index("ix_decisions_project_created", "project_id", "created_at"),
    )

    def to_dict(self):
        d = self.base_dict()
        d.update({
            "kind": "decision",
            "title": self.title,
            "summary": self.summary,
            "context": self.context,
            "alternatives": self.alternatives,
            "rationale": self.rationale,
            "status": self.status,
        })
        return d


# ═════════════════════════════════════════════════════════════════════════════
# JOURNAL ENTRY
# ═════════════════════════════════════════════════════════════════════════════

class JournalEntry(OwnedModel):
    __tablename__ = "journal_entries"

    content = db.Column(db.Text, nullable=False)
    mood = db.Column(db.String(30), nullable=True)

    __table_args__ = (
        db.Index("ix_journal_entries_project_created", "project_id", "created_at"),
    )

    def to_dict(self):
        d = self.base_dict()
        d.update({
            "kind": "journal",
            "content": self.content,
            "mood": self.mood,
        })
        return d


# ═════════════════════════════════════════════════════════════════════════════
# PROBLEM / SOLUTION
# ═════════════════════════════════════════════════════════════════════════════

class ProblemSolution(OwnedModel):
    """A problem write-up: where it occurred, options explored, what was chosen, outcome."""

    __tablename__ = "problem_solutions"

    title = db.Column(db.String(300), nullable=False)
    problem_description = db.Column(db.Text, nullable=True)
    occurrence_location = db.Column(db.String(500), nullable=True)
    possible_solutions = db.Column(db.Text, nullable=True)
    chosen_solution = db.Column(db.Text, nullable=True)
    outcome = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.Index("ix_problem_solutions_project_created", "project_id", "created_at"),
    )

    def to_dict(self):
        d = self.base_dict()
        d.update({
            "kind": "problem_solution",
            "title": self.title,
            "problem_description": self.problem_description,
            "occurrence_location": self.occurrence_location,
            "possible_solutions": self.possible_solutions,
            "chosen_solution": self.chosen_solution,
            "outcome": self.outcome,
        })
        return d


MODEL_BY_COLLECTION = {
    "entries": Entry,
    "decisions": Decision,
    "journal_entries": JournalEntry,
    "problem_solutions": ProblemSolution,
}
