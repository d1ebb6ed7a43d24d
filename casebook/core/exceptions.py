"""
Exceptions raised by the service layer.

Blueprints do not catch these; ``create_app`` maps each type to one HTTP
status and the ``{"error", "code", "details"}`` envelope.

    NotFoundError        404  missing row, or a row owned by someone else
    ValidationError      422  required field blank, or an invalid value
    ConflictError        409  unique value already taken
    AuthenticationError  401  no valid session
    StorageError         502  object store write/read/remove failed

    raise NotFoundError("Decision", resource_id=7, user_id=auth.user_id)
    raise ValidationError("Title is required.", details={"title": "required"})
"""


class CasebookError(Exception):
    """Base for every error the API turns into a JSON response."""


class NotFoundError(CasebookError):
    """A lookup came back empty for the caller.

    ``resource_id`` and ``user_id`` only end up in the log line; the client
    sees ``public_message`` so a foreign record is indistinguishable from a
    missing one.
    """

    def __init__(self, resource: str, resource_id=None, user_id: int | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.user_id = user_id
        parts = [resource]
        if resource_id is not None:
            parts.append(f"#{resource_id}")
        parts.append("not found")
        if user_id is not None:
            parts.append(f"for user {user_id}")
        super().__init__(" ".join(parts))

    @property
    def public_message(self) -> str:
        return f"{self.resource} not found"


class ValidationError(CasebookError):
    """Input rejected before anything was written.

    ``details`` maps field name to a short reason (``"required"``,
    ``"invalid"``). A wizard that raises this keeps its previous state.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})


class ConflictError(CasebookError):
    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        super().__init__(f"{resource} {field} {value!r} already exists")
        self.resource = resource
        self.field = field
        self.value = value


class AuthenticationError(CasebookError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class StorageError(CasebookError):
    """The object store failed; nothing was recorded and the call can be retried."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
