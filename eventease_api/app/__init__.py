"""
Application package initializer.

The project is organised into logical pieces: pydantic models live in
``schemas``, business logic (including the dynamic field schema engine
that compiles per‑event RSVP forms) lives in ``services`` and HTTP
routes are grouped under ``api/<version>/``.  Cross‑cutting concerns
such as configuration, logging, errors and sessions live in ``core``.
"""

from .main import app  # noqa: F401
