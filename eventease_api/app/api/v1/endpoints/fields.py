"""
Custom field endpoints for API v1.

Authors edit the RSVP form of a draft event here.  ``GET
/events/{id}/form`` compiles the current field list and returns what
a client needs to render the form: one entry per field with its type,
options, enforced ``required`` flag and initial value.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from eventease_api.app.api.deps import (
    can_view,
    ensure_can_edit,
    get_event_store,
    load_event,
    to_http_exception,
)
from eventease_api.app.core.errors import EventEaseError
from eventease_api.app.core.security import get_optional_user, require_roles
from eventease_api.app.schemas.event import EventRead
from eventease_api.app.schemas.field import FieldCreate, FieldDefinition, FieldUpdate, RenderField
from eventease_api.app.schemas.user import UserRead, UserRole
from eventease_api.app.services.event_service import EventDraftStore


router = APIRouter()

any_member = require_roles(UserRole.ADMIN, UserRole.STAFF, UserRole.EVENT_OWNER)


def _ensure_visible(event: EventRead, user: Optional[UserRead]) -> None:
    if not can_view(event, user):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event {event.id} not found")


@router.get("/{event_id}/fields", response_model=List[FieldDefinition])
async def list_fields(
    event: EventRead = Depends(load_event),
    current_user: Optional[UserRead] = Depends(get_optional_user),
) -> list:
    _ensure_visible(event, current_user)
    return event.custom_fields


@router.post("/{event_id}/fields", response_model=FieldDefinition, status_code=status.HTTP_201_CREATED)
async def add_field(
    payload: FieldCreate,
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(any_member),
    events: EventDraftStore = Depends(get_event_store),
):
    """Append a custom field to a draft.  The id is assigned here."""
    ensure_can_edit(event, current_user)
    try:
        return await events.add_field(event.id, payload)
    except EventEaseError as e:
        raise to_http_exception(e) from e


@router.patch("/{event_id}/fields/{field_id}", response_model=FieldDefinition)
async def update_field(
    field_id: str,
    payload: FieldUpdate,
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(any_member),
    events: EventDraftStore = Depends(get_event_store),
):
    """Change a field's name, required flag or options."""
    ensure_can_edit(event, current_user)
    try:
        return await events.update_field(event.id, field_id, payload)
    except (EventEaseError, ValueError) as e:
        raise to_http_exception(e) from e


@router.delete("/{event_id}/fields/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_field(
    field_id: str,
    event: EventRead = Depends(load_event),
    current_user: UserRead = Depends(any_member),
    events: EventDraftStore = Depends(get_event_store),
) -> Response:
    ensure_can_edit(event, current_user)
    try:
        await events.remove_field(event.id, field_id)
    except EventEaseError as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{event_id}/form", response_model=List[RenderField])
async def render_form(
    event: EventRead = Depends(load_event),
    current_user: Optional[UserRead] = Depends(get_optional_user),
    events: EventDraftStore = Depends(get_event_store),
) -> List[RenderField]:
    """Compile the field list and return render metadata.

    Answers 422 with every problem when the field list is malformed,
    which lets an author see what blocks publishing.
    """
    _ensure_visible(event, current_user)
    try:
        schema = await events.compile_schema(event.id)
    except EventEaseError as e:
        raise to_http_exception(e) from e
    return schema.render()
