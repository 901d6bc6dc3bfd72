"""
Pydantic schema definitions for API payloads.

Each domain (events, custom fields, attendees, users) defines its own
Pydantic models for request and response bodies.  Schemas are
separated from the in‑memory stores to decouple API representation
from storage.
"""
