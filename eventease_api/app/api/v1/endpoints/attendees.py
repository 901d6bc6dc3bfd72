"""
RSVP and attendee endpoints for API v1.

Submitting an RSVP is public.  When custom answers are invalid the
response is 422 with one ``{"field_id", "message"}`` entry per invalid
field, in the order the fields appear on the form.  The attendee table
is available to the event owner and to admin/staff.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from eventease_api.app.api.deps import (
    ensure_can_manage_attendees,
    get_rsvp_service,
    load_event,
    to_http_exception,
)
from eventease_api.app.core.errors import EventEaseError
from eventease_api.app.core.security import get_current_user
from eventease_api.app.schemas.attendee import (
    AttendeeRead,
    AttendeeStats,
    AttendeeStatus,
    AttendeeStatusUpdate,
    RsvpCreate,
)
from eventease_api.app.schemas.event import EventRead
from eventease_api.app.schemas.user import UserRead
from eventease_api.app.services.rsvp_service import RsvpService


router = APIRouter()


@router.post("/{event_id}/rsvp", response_model=AttendeeRead, status_code=status.HTTP_201_CREATED)
async def submit_rsvp(
    rsvp: RsvpCreate,
    event: EventRead = Depends(load_event),
    rsvps: RsvpService = Depends(get_rsvp_service),
) -> AttendeeRead:
    try:
        return await rsvps.submit_rsvp(event.id, rsvp)
    except EventEaseError as e:
        raise to_http_exception(e) from e


@router.get("/{event_id}/attendees", response_model=List[AttendeeRead])
async def list_attendees(
    search: Optional[str] = Query(None),
    status_filter: Optional[AttendeeStatus] = Query(None, alias="status"),
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(get_current_user),
    rsvps: RsvpService = Depends(get_rsvp_service),
) -> List[AttendeeRead]:
    """Attendee table with search over name and e‑mail."""
    ensure_can_manage_attendees(event, current_user)
    return await rsvps.list_attendees(event.id, search=search, status=status_filter)


@router.get("/{event_id}/attendees/stats", response_model=AttendeeStats)
async def attendee_stats(
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(get_current_user),
    rsvps: RsvpService = Depends(get_rsvp_service),
) -> AttendeeStats:
    ensure_can_manage_attendees(event, current_user)
    return await rsvps.attendee_stats(event.id)


@router.patch("/{event_id}/attendees/{attendee_id}", response_model=AttendeeRead)
async def update_attendee_status(
    attendee_id: str,
    body: AttendeeStatusUpdate,
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(get_current_user),
    rsvps: RsvpService = Depends(get_rsvp_service),
) -> AttendeeRead:
    """Confirm, cancel or check in an attendee."""
    ensure_can_manage_attendees(event, current_user)
    try:
        return await rsvps.update_attendee_status(event.id, attendee_id, body.status)
    except EventEaseError as e:
        raise to_http_exception(e) from e
