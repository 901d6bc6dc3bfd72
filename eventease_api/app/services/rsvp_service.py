"""
Business logic for RSVPs and the attendee table.

Attendees are kept in memory per event.  An RSVP is accepted only for
a published event with spare capacity; its custom answers are checked
by a ``FormShell`` over a schema compiled from the event's current
field list, and the attendee is stored only after validation succeeds.
Cancelled attendees do not occupy a seat.
"""

import itertools
import logging
from typing import Any, Dict, List, Optional

from ..core.errors import (
    AttendeeNotFoundError,
    DuplicateRsvpError,
    EventFullError,
    ResponseValidationError,
    RsvpClosedError,
)
from ..schemas.attendee import AttendeeRead, AttendeeStats, AttendeeStatus, RsvpCreate
from ..schemas.event import EventRead, EventStatus
from ..schemas.field import FieldResponse
from .event_service import EventDraftStore, utcnow
from .form_shell import FormShell, SubmissionState


logger = logging.getLogger(__name__)


class RsvpService:
    """Collect RSVPs and manage attendees for events in a draft store."""

    def __init__(self, events: EventDraftStore, clock=utcnow):
        self.events = events
        self._attendees: Dict[str, Dict[str, AttendeeRead]] = {}
        self._attendee_ids = itertools.count(1)
        self._clock = clock

    def _for_event(self, event_id: str) -> Dict[str, AttendeeRead]:
        return self._attendees.setdefault(event_id, {})

    def _active(self, event_id: str) -> List[AttendeeRead]:
        return [a for a in self._for_event(event_id).values() if a.status != AttendeeStatus.CANCELLED]

    def _email_taken(self, event_id: str, email: str, exclude: Optional[str] = None) -> bool:
        email = email.lower()
        return any(a.email.lower() == email and a.id != exclude for a in self._active(event_id))

    @staticmethod
    def _remaining(event: EventRead, active: int) -> Optional[int]:
        if event.capacity is None:
            return None
        return max(event.capacity - active, 0)

    async def submit_rsvp(self, event_id: str, rsvp: RsvpCreate) -> AttendeeRead:
        """Register an attendee for a published event.

        Raises
        ------
        EventNotFoundError
            The event does not exist.
        RsvpClosedError
            The event is not published.
        EventFullError
            Every seat is taken.
        DuplicateRsvpError
            The e‑mail address already holds an active registration.
        ResponseValidationError
            One or more custom answers are invalid; ``errors`` lists all
            of them in field order.
        """
        event = await self.events.get_event(event_id)
        if event.status != EventStatus.PUBLISHED:
            raise RsvpClosedError(f"Event {event_id} is {event.status.value} and does not accept RSVPs")

        active = self._active(event_id)
        if self._remaining(event, len(active)) == 0:
            logger.warning("RSVP for full event %s rejected (%s)", event_id, rsvp.email)
            raise EventFullError(f"Event {event_id} is full")
        if self._email_taken(event_id, rsvp.email):
            raise DuplicateRsvpError(f"{rsvp.email} is already registered for event {event_id}")

        schema = await self.events.compile_schema(event_id)
        shell = FormShell(schema, name=f"rsvp:{event_id}")

        async def store(values: Dict[str, Any]) -> AttendeeRead:
            return self._store(event, rsvp, values)

        state = await shell.submit(rsvp.responses, store)
        if state == SubmissionState.INVALID:
            logger.warning(
                "RSVP for event %s rejected: %d invalid field(s)", event_id, len(shell.errors)
            )
            raise ResponseValidationError(shell.errors)
        if state == SubmissionState.SUBMIT_FAILED:
            raise shell.failure
        return shell.result

    def _store(self, event: EventRead, rsvp: RsvpCreate, values: Dict[str, Any]) -> AttendeeRead:
        now = self._clock()
        attendee = AttendeeRead(
            id=str(next(self._attendee_ids)),
            event_id=event.id,
            name=rsvp.name,
            email=rsvp.email,
            status=AttendeeStatus.REGISTERED,
            created_at=now,
            updated_at=now,
            responses=[FieldResponse(field_id=k, value=v) for k, v in values.items()],
        )
        self._for_event(event.id)[attendee.id] = attendee
        logger.info("RSVP %s accepted for event %s (%s)", attendee.id, event.id, attendee.email)
        return attendee

    async def list_attendees(
        self,
        event_id: str,
        search: Optional[str] = None,
        status: Optional[AttendeeStatus] = None,
    ) -> List[AttendeeRead]:
        """Attendees in registration order.

        ``search`` is a case‑insensitive substring match on name and
        e‑mail.
        """
        await self.events.get_event(event_id)
        needle = search.strip().lower() if search else None
        result: List[AttendeeRead] = []
        for attendee in self._for_event(event_id).values():
            if status is not None and attendee.status != status:
                continue
            if needle and needle not in attendee.name.lower() and needle not in attendee.email.lower():
                continue
            result.append(attendee)
        return result

    async def get_attendee(self, event_id: str, attendee_id: str) -> AttendeeRead:
        await self.events.get_event(event_id)
        attendee = self._for_event(event_id).get(attendee_id)
        if attendee is None:
            raise AttendeeNotFoundError(event_id, attendee_id)
        return attendee

    async def update_attendee_status(
        self, event_id: str, attendee_id: str, status: AttendeeStatus
    ) -> AttendeeRead:
        """Change an attendee's status.

        Re‑activating a cancelled attendee needs a free seat and fails
        with ``DuplicateRsvpError`` when the same e‑mail has registered
        again in the meantime.
        """
        event = await self.events.get_event(event_id)
        attendee = await self.get_attendee(event_id, attendee_id)
        if attendee.status == status:
            return attendee
        if attendee.status == AttendeeStatus.CANCELLED:
            if self._remaining(event, len(self._active(event_id))) == 0:
                raise EventFullError(f"Event {event_id} is full")
            if self._email_taken(event_id, attendee.email, exclude=attendee_id):
                raise DuplicateRsvpError(f"{attendee.email} is already registered for event {event_id}")
        updated = attendee.model_copy(update={"status": status, "updated_at": self._clock()})
        self._for_event(event_id)[attendee_id] = updated
        logger.info(
            "Attendee %s on event %s: %s -> %s",
            attendee_id, event_id, attendee.status.value, status.value,
        )
        return updated

    async def attendee_stats(self, event_id: str) -> AttendeeStats:
        event = await self.events.get_event(event_id)
        attendees = list(self._for_event(event_id).values())
        by_status = {status: 0 for status in AttendeeStatus}
        for attendee in attendees:
            by_status[attendee.status] += 1
        active = len(attendees) - by_status[AttendeeStatus.CANCELLED]
        return AttendeeStats(
            event_id=event_id,
            total=len(attendees),
            by_status=by_status,
            capacity=event.capacity,
            remaining=self._remaining(event, active),
        )

    async def forget_event(self, event_id: str) -> int:
        """Drop every attendee of a deleted event.  Returns how many."""
        removed = self._attendees.pop(event_id, {})
        return len(removed)
