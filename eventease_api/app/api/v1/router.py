"""
Top‑level router for version 1 of the API.

This router aggregates domain‑specific routers under a unified
prefix.  When new domains are introduced, update this file to include
their routers.
"""

from fastapi import APIRouter

from .endpoints import attendees, auth, events, fields

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(events.router, prefix="/events", tags=["events"])
# Field and attendee routes live below ``/events/{event_id}``.
router.include_router(fields.router, prefix="/events", tags=["fields"])
router.include_router(attendees.router, prefix="/events", tags=["attendees"])
