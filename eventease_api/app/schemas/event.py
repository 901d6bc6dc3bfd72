"""
Pydantic models for event data.

``EventBase`` holds the fields shared by requests and responses;
``EventCreate`` extends it for requests (optionally with an initial
list of custom fields) and ``EventRead`` adds the server‑managed
attributes.  ``EventUpdate`` allows partial updates.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .field import FieldCreate, FieldDefinition


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read a date without a timezone as UTC so any two dates compare."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventBase(BaseModel):
    title: str = Field(..., min_length=2, max_length=100, examples=["Annual Tech Conference"])
    description: str = Field(..., min_length=10, examples=["Three days of talks, workshops and networking."])
    location: str = Field(..., min_length=2, examples=["San Francisco Convention Center"])
    start_date: datetime = Field(..., examples=["2025-07-15T09:00:00"])
    end_date: datetime = Field(..., examples=["2025-07-17T17:00:00"])
    # ``None`` means unlimited seats.
    capacity: Optional[int] = Field(None, gt=0, examples=[500])

    dates_as_utc = field_validator("start_date", "end_date")(as_utc)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must not be before the start date")
        return self


class EventCreate(EventBase):
    """Schema for creating an event.

    New events start as ``draft`` unless ``published`` is requested.
    """

    status: Literal["draft", "published"] = "draft"
    custom_fields: List[FieldCreate] = Field(default_factory=list)


class EventRead(EventBase):
    """Schema for reading an event from the API."""

    id: str
    status: EventStatus
    owner_id: str
    created_at: datetime
    updated_at: datetime
    custom_fields: List[FieldDefinition] = Field(default_factory=list)

    model_config = {
        "from_attributes": True,
    }


class EventUpdate(BaseModel):
    """Schema for updating an event.

    All fields are optional; only provided fields will be updated.
    Status changes go through the publish and cancel endpoints.
    """

    title: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, min_length=10)
    location: Optional[str] = Field(None, min_length=2)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    capacity: Optional[int] = Field(None, gt=0)

    dates_as_utc = field_validator("start_date", "end_date")(as_utc)
