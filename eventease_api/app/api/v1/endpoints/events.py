"""
Event endpoints for API v1.

Any logged in user may create events; only the owner or an admin may
change, publish, cancel or delete one.  Published events are public,
drafts are visible to their owner and to admin/staff.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from eventease_api.app.api.deps import (
    can_view,
    ensure_can_edit,
    get_event_store,
    get_rsvp_service,
    load_event,
    to_http_exception,
)
from eventease_api.app.core.errors import EventEaseError
from eventease_api.app.core.security import get_optional_user, require_roles
from eventease_api.app.schemas.event import EventCreate, EventRead, EventStatus, EventUpdate
from eventease_api.app.schemas.user import UserRead, UserRole
from eventease_api.app.services.event_service import EventDraftStore
from eventease_api.app.services.rsvp_service import RsvpService


router = APIRouter()

any_member = require_roles(UserRole.ADMIN, UserRole.STAFF, UserRole.EVENT_OWNER)


@router.post("/", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    event: EventCreate,
    current_user: UserRead = Depends(any_member),
    events: EventDraftStore = Depends(get_event_store),
) -> EventRead:
    """Create a new event.

    Custom fields may be supplied up front.  An event created as
    ``published`` must have a well formed field list (422 otherwise).
    """
    try:
        return await events.create_event(event, current_user)
    except (EventEaseError, ValueError) as e:
        raise to_http_exception(e) from e


@router.get("/", response_model=List[EventRead])
async def list_events(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    mine: bool = Query(False),
    search: Optional[str] = Query(None),
    current_user: Optional[UserRead] = Depends(get_optional_user),
    events: EventDraftStore = Depends(get_event_store),
) -> List[EventRead]:
    """List events visible to the caller.

    - **status** filters by event status.
    - **mine** restricts the list to the caller's own events.
    - **search** matches title or location, case insensitive.
    """
    if mine and current_user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    owner_id = current_user.id if mine else None
    found = await events.list_events(status=status_filter, owner_id=owner_id, search=search)
    return [e for e in found if can_view(e, current_user)]


@router.get("/{event_id}", response_model=EventRead)
async def get_event(
    event: EventRead = Depends(load_event),
    current_user: Optional[UserRead] = Depends(get_optional_user),
) -> EventRead:
    """Retrieve a single event.  Hidden drafts answer 404."""
    if not can_view(event, current_user):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event {event.id} not found")
    return event


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    updates: EventUpdate,
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(any_member),
    events: EventDraftStore = Depends(get_event_store),
) -> EventRead:
    """Update an event.  Unspecified fields remain unchanged.

    ``capacity`` may be set to ``null`` explicitly to remove the limit.
    """
    ensure_can_edit(event, current_user)
    update_dict = {
        k: v for k, v in updates.model_dump(exclude_unset=True).items() if v is not None or k == "capacity"
    }
    try:
        return await events.update_event(event.id, update_dict)
    except (EventEaseError, ValueError) as e:
        raise to_http_exception(e) from e


@router.post("/{event_id}/publish", response_model=EventRead)
async def publish_event(
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(any_member),
    events: EventDraftStore = Depends(get_event_store),
) -> EventRead:
    """Publish a draft.

    Answers 422 with the list of problems when the custom fields do not
    compile, and 409 when the event is not a draft.
    """
    ensure_can_edit(event, current_user)
    try:
        return await events.publish_event(event.id)
    except EventEaseError as e:
        raise to_http_exception(e) from e


@router.post("/{event_id}/cancel", response_model=EventRead)
async def cancel_event(
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(any_member),
    events: EventDraftStore = Depends(get_event_store),
) -> EventRead:
    ensure_can_edit(event, current_user)
    try:
        return await events.cancel_event(event.id)
    except EventEaseError as e:
        raise to_http_exception(e) from e


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(any_member),
    events: EventDraftStore = Depends(get_event_store),
    rsvps: RsvpService = Depends(get_rsvp_service),
) -> Response:
    """Delete an event together with its attendees."""
    ensure_can_edit(event, current_user)
    try:
        await events.delete_event(event.id)
    except EventEaseError as e:
        raise to_http_exception(e) from e
    await rsvps.forget_event(event.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
