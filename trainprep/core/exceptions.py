"""
Platform-wide exception hierarchy.

Services raise these types; the application factory registers one handler
per type so every blueprint gets the same HTTP status codes and JSON body.

Usage:
    from trainprep.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="TrainingRequest", resource_id=request_id)
    raise ValidationError("location is required", details={"location": "..."})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist or is not visible.

    Requests the actor's role cannot see are reported as missing as well,
    so a 404 never confirms that a record exists.

    Args:
        resource: Human-readable entity name (e.g. "TrainingRequest").
        resource_id: The key that was looked up. Included in logs and message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when well-formed input violates a business rule.

    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown, keyed by field name.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value. Maps to HTTP 409."""

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class AuthenticationError(Exception):
    """Raised when credentials or tokens are missing or invalid. Maps to HTTP 401."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class WorkflowError(Exception):
    """Base class for training-request workflow failures.

    Args:
        role: Role code that attempted the action.
        status: Status the request was in.
        action: Action that was attempted.
        reason: Human-readable explanation.
    """

    def __init__(self, role, status, action, reason: str) -> None:
        self.role = str(role)
        self.status = str(status)
        self.action = str(action)
        self.reason = reason
        super().__init__(f"Cannot '{self.action}' as {self.role} from status '{self.status}': {reason}")


class InvalidTransition(WorkflowError):
    """The action is not defined for the request's current status. Maps to HTTP 409."""


class UnauthorizedRole(WorkflowError):
    """The acting role is not the one bound to the current status. Maps to HTTP 403."""
