"""
Exception types raised by the service layer.

Services raise these; endpoint handlers translate them into
``HTTPException`` responses.  ``SchemaError`` and
``ResponseValidationError`` also subclass ``ValueError`` and the
not‑found family subclasses ``LookupError`` so that callers catching
the builtin types keep working.
"""

from typing import List, Sequence


class EventEaseError(Exception):
    """Base class for all application errors."""


class SchemaError(EventEaseError, ValueError):
    """A custom field sequence cannot be compiled.

    ``problems`` lists every malformed definition found, not only the
    first one, so the author can fix them all at once.
    """

    def __init__(self, problems: Sequence[str]):
        self.problems: List[str] = list(problems)
        super().__init__("; ".join(self.problems))


class ResponseValidationError(EventEaseError, ValueError):
    """Attendee responses failed validation.

    ``errors`` holds the ``FieldError`` entries in field definition
    order.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        summary = ", ".join(f"{e.field_id}: {e.message}" for e in self.errors)
        super().__init__(f"Invalid responses ({summary})")


class NotFoundError(EventEaseError, LookupError):
    """Base class for unknown identifiers."""


class EventNotFoundError(NotFoundError):
    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event {event_id} not found")


class FieldNotFoundError(NotFoundError):
    def __init__(self, event_id: str, field_id: str):
        self.event_id = event_id
        self.field_id = field_id
        super().__init__(f"Field {field_id} not found on event {event_id}")


class AttendeeNotFoundError(NotFoundError):
    def __init__(self, event_id: str, attendee_id: str):
        self.event_id = event_id
        self.attendee_id = attendee_id
        super().__init__(f"Attendee {attendee_id} not found on event {event_id}")


class ConflictError(EventEaseError):
    """The request is well formed but clashes with the current state."""


class EventLockedError(ConflictError):
    """Custom fields of a non‑draft event cannot change."""


class EventFullError(ConflictError):
    """The event has no remaining capacity."""


class RsvpClosedError(ConflictError):
    """The event does not accept RSVPs in its current status."""


class DuplicateRsvpError(ConflictError):
    """The e‑mail address already holds an active registration."""


class InvalidTransitionError(EventEaseError, RuntimeError):
    """A form shell was asked to move between incompatible states."""


class AuthenticationError(EventEaseError):
    """Mock login or registration was rejected."""
