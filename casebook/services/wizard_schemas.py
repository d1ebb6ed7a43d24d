"""
Wizard field schemas — one declarative description per entity kind.

Every Add/Edit wizard is the same stepped form; what differs is the list of
fields, the step each one lives on and whether it sits behind an "add X"
toggle. The last step of every schema is the review step and holds no
fields.

    note              content*            | tags, location, created_at        | review
    screenshot        image*, caption     | tags, location, created_at        | review
    decision          title*, summary     | context, alternatives             | rationale, tags, status, created_at | review
    journal           content*            | mood, tags, created_at            | review
    problem_solution  title*, problem_description | occurrence_location, possible_solutions
                      | chosen_solution, outcome | tags, created_at | review
"""

from dataclasses import dataclass, field

from casebook.models.records import DECISION_STATUSES, DEFAULT_DECISION_STATUS, MOODS

# Control kinds understood by the page shell
TEXT = "text"
TEXTAREA = "textarea"
TAGS = "tags"
SELECT = "select"
DATETIME = "datetime"
IMAGE = "image"

REVIEW_LABEL = "Review & Submit"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str
    step: int
    label: str
    required: bool = False
    toggle: bool = False
    options: tuple = ()
    default: object = None
    column: str | None = None

    @property
    def record_key(self) -> str:
        """Record attribute this field reads from and writes to."""
        return self.column or self.name

    def empty_value(self):
        if self.kind == TAGS:
            return []
        return self.default

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind,
            "step": self.step,
            "label": self.label,
            "required": self.required,
            "toggle": self.toggle,
            "options": list(self.options),
            "default": self.default,
        }


@dataclass(frozen=True)
class WizardSchema:
    """Fields and step titles of one wizard."""

    kind: str
    collection: str
    fields: tuple
    step_titles: tuple
    entry_type: str | None = None
    field_map: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "field_map", {f.name: f for f in self.fields})

    @property
    def total_steps(self) -> int:
        return len(self.step_titles)

    @property
    def review_step(self) -> int:
        return self.total_steps

    def get_field(self, name: str) -> FieldSpec | None:
        return self.field_map.get(name)

    def fields_for_step(self, step: int) -> list[FieldSpec]:
        return [f for f in self.fields if f.step == step]

    def required_fields(self, step: int | None = None) -> list[FieldSpec]:
        return [f for f in self.fields if f.required and (step is None or f.step == step)]

    @property
    def toggle_fields(self) -> list[FieldSpec]:
        return [f for f in self.fields if f.toggle]

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "collection": self.collection,
            "entry_type": self.entry_type,
            "total_steps": self.total_steps,
            "review_step": self.review_step,
            "steps": [
                {
                    "step": idx,
                    "title": title,
                    "fields": [f.to_dict() for f in self.fields_for_step(idx)],
                }
                for idx, title in enumerate(self.step_titles, start=1)
            ],
        }


def _tags(step):
    return FieldSpec("tags", TAGS, step, "Tags", toggle=True)


def _created_at(step):
    return FieldSpec("created_at", DATETIME, step, "Date")


def _location(step):
    return FieldSpec("location", TEXT, step, "Location", toggle=True)


NOTE = WizardSchema(
    kind="note",
    collection="entries",
    entry_type="note",
    fields=(
        FieldSpec("content", TEXTAREA, 1, "Note", required=True),
        _tags(2),
        _location(2),
        _created_at(2),
    ),
    step_titles=("Write Note", "Details", REVIEW_LABEL),
)

SCREENSHOT = WizardSchema(
    kind="screenshot",
    collection="entries",
    entry_type="screenshot",
    fields=(
        FieldSpec("image", IMAGE, 1, "Screenshot", required=True, column="file_url"),
        FieldSpec("caption", TEXTAREA, 1, "Caption", toggle=True, column="content"),
        _tags(2),
        _location(2),
        _created_at(2),
    ),
    step_titles=("Upload Screenshot", "Details", REVIEW_LABEL),
)

DECISION = WizardSchema(
    kind="decision",
    collection="decisions",
    fields=(
        FieldSpec("title", TEXT, 1, "Decision Title", required=True),
        FieldSpec("summary", TEXTAREA, 1, "Summary", toggle=True),
        FieldSpec("context", TEXTAREA, 2, "Problem / Context", toggle=True),
        FieldSpec("alternatives", TEXTAREA, 2, "Alternatives Explored", toggle=True),
        FieldSpec("rationale", TEXTAREA, 3, "Why this decision?", toggle=True),
        _tags(3),
        FieldSpec("status", SELECT, 3, "Status",
                  options=DECISION_STATUSES, default=DEFAULT_DECISION_STATUS),
        _created_at(3),
    ),
    step_titles=("Details", "Context", "Rationale", REVIEW_LABEL),
)

JOURNAL = WizardSchema(
    kind="journal",
    collection="journal_entries",
    fields=(
        FieldSpec("content", TEXTAREA, 1, "Journal Entry", required=True),
        FieldSpec("mood", SELECT, 2, "Mood", toggle=True, options=MOODS),
        _tags(2),
        _created_at(2),
    ),
    step_titles=("Write Entry", "Mood & Tags", REVIEW_LABEL),
)

PROBLEM_SOLUTION = WizardSchema(
    kind="problem_solution",
    collection="problem_solutions",
    fields=(
        FieldSpec("title", TEXT, 1, "Problem Title", required=True),
        FieldSpec("problem_description", TEXTAREA, 1, "Problem Description", toggle=True),
        FieldSpec("occurrence_location", TEXT, 2, "Where did it occur?", toggle=True),
        FieldSpec("possible_solutions", TEXTAREA, 2, "Possible Solutions", toggle=True),
        FieldSpec("chosen_solution", TEXTAREA, 3, "Chosen Solution", toggle=True),
        FieldSpec("outcome", TEXTAREA, 3, "Outcome", toggle=True),
        _tags(4),
        _created_at(4),
    ),
    step_titles=("Problem", "Investigation", "Solution", "Tags & Date", REVIEW_LABEL),
)

SCHEMAS = {s.kind: s for s in (NOTE, SCREENSHOT, DECISION, JOURNAL, PROBLEM_SOLUTION)}


def get_schema(kind: str) -> WizardSchema:
    try:
        return SCHEMAS[kind]
    except KeyError:
        raise ValueError(f"Unknown wizard kind: {kind!r}") from None


def schema_for_record(record: dict) -> WizardSchema:
    """Pick the schema that edits a serialized record (uses its ``kind``)."""
    return get_schema(record.get("kind") or record.get("type"))
