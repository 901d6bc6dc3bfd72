"""
Shared dependencies for API routes.

Services are owned by the application instance (``app.state``) and
looked up per request, so tests can build an isolated app with fresh
stores.  ``to_http_exception`` maps service errors to HTTP responses
in one place.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from eventease_api.app.core.errors import (
    AuthenticationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ResponseValidationError,
    SchemaError,
)
from eventease_api.app.schemas.event import EventRead, EventStatus
from eventease_api.app.schemas.user import UserRead, UserRole
from eventease_api.app.services.event_service import EventDraftStore
from eventease_api.app.services.rsvp_service import RsvpService
from eventease_api.app.services.user_service import UserService


def get_event_store(request: Request) -> EventDraftStore:
    return request.app.state.events


def get_rsvp_service(request: Request) -> RsvpService:
    return request.app.state.rsvps


def get_user_service(request: Request) -> UserService:
    return request.app.state.users


def to_http_exception(exc: Exception) -> HTTPException:
    """Translate a service error into an ``HTTPException``."""
    if isinstance(exc, ResponseValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[error.model_dump() for error in exc.errors],
        )
    if isinstance(exc, SchemaError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.problems)
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (ConflictError, InvalidTransitionError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


def can_view(event: EventRead, user: Optional[UserRead]) -> bool:
    """Drafts are visible to their owner and to admin/staff only."""
    if event.status != EventStatus.DRAFT:
        return True
    if user is None:
        return False
    return user.role in (UserRole.ADMIN, UserRole.STAFF) or user.id == event.owner_id


def ensure_can_edit(event: EventRead, user: UserRead) -> None:
    """Only the owner or an admin may change an event."""
    if user.role != UserRole.ADMIN and user.id != event.owner_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the event owner may change it")


def ensure_can_manage_attendees(event: EventRead, user: UserRead) -> None:
    if user.role not in (UserRole.ADMIN, UserRole.STAFF) and user.id != event.owner_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


async def load_event(event_id: str, events: EventDraftStore = Depends(get_event_store)) -> EventRead:
    """Path dependency resolving ``event_id`` or answering 404."""
    try:
        return await events.get_event(event_id)
    except NotFoundError as e:
        raise to_http_exception(e) from e
