"""
Business logic for events and their custom RSVP fields.

``EventDraftStore`` keeps events in memory.  It owns each event's
ordered list of custom field definitions and the identifier source
for new fields.  Field definitions can only change while an event is
a draft; publishing compiles the field list first so a malformed list
never reaches attendees.  ``compile_schema`` compiles the current
snapshot on every call.
"""

import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..core.config import settings
from ..core.errors import EventLockedError, EventNotFoundError, FieldNotFoundError
from ..schemas.event import EventCreate, EventRead, EventStatus, as_utc
from ..schemas.field import FieldCreate, FieldUpdate, SelectField, field_definition_adapter
from ..schemas.user import UserRead
from .field_ids import FieldIdSource, make_field_id_source
from .field_schema import CompiledSchema, compile_fields


logger = logging.getLogger(__name__)

EDITABLE_STATUSES = {EventStatus.DRAFT, EventStatus.PUBLISHED}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventDraftStore:
    """In‑memory store for events and their custom fields."""

    def __init__(
        self,
        field_id_strategy: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._events: Dict[str, EventRead] = {}
        self._field_ids: Dict[str, FieldIdSource] = {}
        self._event_ids = itertools.count(1)
        self._strategy = field_id_strategy or settings.field_id_strategy
        self._clock = clock
        # Fail at construction time rather than on the first added field.
        make_field_id_source(self._strategy)

    def _get(self, event_id: str) -> EventRead:
        event = self._events.get(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def _save(self, event: EventRead, **changes: Any) -> EventRead:
        changes["updated_at"] = self._clock()
        updated = event.model_copy(update=changes)
        self._events[event.id] = updated
        return updated

    def _require_draft(self, event: EventRead) -> None:
        if event.status != EventStatus.DRAFT:
            raise EventLockedError(
                f"Custom fields of event {event.id} cannot change once it is {event.status.value}"
            )

    async def create_event(self, data: EventCreate, owner: UserRead) -> EventRead:
        """Create an event owned by ``owner``.

        Custom fields supplied with the request receive identifiers in
        order.  When the event is created as ``published`` its fields
        must compile, otherwise ``SchemaError`` is raised and nothing
        is stored.
        """
        event_id = str(next(self._event_ids))
        id_source = make_field_id_source(self._strategy)
        fields = [payload.build(id_source.next_id()) for payload in data.custom_fields]
        status = EventStatus(data.status)
        if status == EventStatus.PUBLISHED:
            compile_fields(fields)
        now = self._clock()
        event = EventRead(
            id=event_id,
            title=data.title,
            description=data.description,
            location=data.location,
            start_date=data.start_date,
            end_date=data.end_date,
            capacity=data.capacity,
            status=status,
            owner_id=owner.id,
            created_at=now,
            updated_at=now,
            custom_fields=fields,
        )
        self._events[event_id] = event
        self._field_ids[event_id] = id_source
        logger.info("User %s created event %s '%s' (%s)", owner.email, event_id, data.title, status.value)
        return event

    async def list_events(
        self,
        status: Optional[EventStatus] = None,
        owner_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[EventRead]:
        """Return events in creation order, optionally filtered.

        ``search`` is a case‑insensitive substring match on title and
        location.
        """
        needle = search.lower() if search else None
        events: List[EventRead] = []
        for event in self._events.values():
            if status is not None and event.status != status:
                continue
            if owner_id is not None and event.owner_id != owner_id:
                continue
            if needle and needle not in event.title.lower() and needle not in event.location.lower():
                continue
            events.append(event)
        return events

    async def get_event(self, event_id: str) -> EventRead:
        return self._get(event_id)

    async def update_event(self, event_id: str, updates: Dict[str, Any]) -> EventRead:
        """Apply a partial update.

        Cancelled and completed events are read only.  The resulting
        dates are checked together, so moving only the start date past
        the existing end date is rejected with ``ValueError``.
        """
        event = self._get(event_id)
        if event.status not in EDITABLE_STATUSES:
            raise EventLockedError(f"Event {event_id} is {event.status.value} and cannot be edited")
        if not updates:
            return event
        updates = dict(updates)
        for key in ("start_date", "end_date"):
            if key in updates:
                updates[key] = as_utc(updates[key])
        start = updates.get("start_date", event.start_date)
        end = updates.get("end_date", event.end_date)
        if end < start:
            raise ValueError("End date must not be before the start date")
        updated = self._save(event, **updates)
        logger.info("Event %s updated (%s)", event_id, ", ".join(sorted(updates)))
        return updated

    async def publish_event(self, event_id: str) -> EventRead:
        event = self._get(event_id)
        self._require_draft(event)
        compile_fields(event.custom_fields)
        updated = self._save(event, status=EventStatus.PUBLISHED)
        logger.info("Event %s published with %d custom field(s)", event_id, len(event.custom_fields))
        return updated

    async def cancel_event(self, event_id: str) -> EventRead:
        event = self._get(event_id)
        if event.status not in EDITABLE_STATUSES:
            raise EventLockedError(f"Event {event_id} is already {event.status.value}")
        updated = self._save(event, status=EventStatus.CANCELLED)
        logger.info("Event %s cancelled", event_id)
        return updated

    async def delete_event(self, event_id: str) -> None:
        self._get(event_id)
        del self._events[event_id]
        self._field_ids.pop(event_id, None)
        logger.info("Event %s deleted", event_id)

    async def list_fields(self, event_id: str) -> list:
        return list(self._get(event_id).custom_fields)

    async def add_field(self, event_id: str, payload: FieldCreate):
        """Append a custom field to a draft and return its definition."""
        event = self._get(event_id)
        self._require_draft(event)
        definition = payload.build(self._field_ids[event_id].next_id())
        self._save(event, custom_fields=[*event.custom_fields, definition])
        logger.info("Field %s (%s) added to event %s", definition.id, definition.type, event_id)
        return definition

    async def update_field(self, event_id: str, field_id: str, payload: FieldUpdate):
        """Edit name, required flag or options of a draft's field.

        The definition is rebuilt and put back at the same position.
        """
        event = self._get(event_id)
        self._require_draft(event)
        fields = list(event.custom_fields)
        for index, current in enumerate(fields):
            if current.id == field_id:
                break
        else:
            raise FieldNotFoundError(event_id, field_id)

        changes = payload.model_dump(exclude_none=True)
        if "options" in changes and not isinstance(current, SelectField):
            raise ValueError("Options are only allowed for select fields")
        data = current.model_dump()
        data.update(changes)
        fields[index] = field_definition_adapter.validate_python(data)
        self._save(event, custom_fields=fields)
        logger.info("Field %s on event %s updated", field_id, event_id)
        return fields[index]

    async def remove_field(self, event_id: str, field_id: str) -> None:
        event = self._get(event_id)
        self._require_draft(event)
        remaining = [f for f in event.custom_fields if f.id != field_id]
        if len(remaining) == len(event.custom_fields):
            raise FieldNotFoundError(event_id, field_id)
        self._save(event, custom_fields=remaining)
        logger.info("Field %s removed from event %s", field_id, event_id)

    async def compile_schema(self, event_id: str) -> CompiledSchema:
        """Compile the event's current field list.

        Raises ``SchemaError`` when the list is malformed.
        """
        return compile_fields(tuple(self._get(event_id).custom_fields))
