"""
Pydantic models for RSVPs and attendees.

An RSVP carries the fixed name/e‑mail pair plus raw answers to the
event's custom fields keyed by field id.  The raw answers are checked
against the event's compiled field schema by the RSVP service, not
here, because the rules depend on the event.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .field import FieldResponse


class AttendeeStatus(str, Enum):
    REGISTERED = "registered"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    ATTENDED = "attended"


class RsvpCreate(BaseModel):
    """Schema for submitting an RSVP."""

    name: str = Field(..., min_length=2, examples=["Jane Smith"])
    email: EmailStr = Field(..., examples=["jane.smith@example.com"])
    responses: Dict[str, Any] = Field(
        default_factory=dict,
        description="Raw answers keyed by custom field id",
        examples=[{"field_1": "Vegetarian", "field_2": "Medium", "field_3": True}],
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class AttendeeRead(BaseModel):
    id: str
    event_id: str
    name: str
    email: EmailStr
    status: AttendeeStatus
    created_at: datetime
    updated_at: datetime
    responses: List[FieldResponse] = Field(default_factory=list)

    model_config = {
        "from_attributes": True,
    }


class AttendeeStatusUpdate(BaseModel):
    status: AttendeeStatus


class AttendeeStats(BaseModel):
    """Registration overview for one event."""

    event_id: str
    total: int
    by_status: Dict[AttendeeStatus, int]
    capacity: Optional[int] = None
    # Seats left counting every attendee that has not cancelled;
    # ``None`` when the event has no capacity limit.
    remaining: Optional[int] = None
