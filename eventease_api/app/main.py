"""
Main entrypoint for the EventEase API.

This module assembles the FastAPI application, sets up logging and
includes versioned routers.  ``create_app`` builds a fully wired app
with its own in‑memory stores and session registry; ``app`` is the
instance created at import time, e.g. for::

    uvicorn eventease_api.app.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.logging_config import setup_logging
from .core.security import token_is_valid
from .core.session import SessionRegistry
from .services.event_service import EventDraftStore
from .services.rsvp_service import RsvpService
from .services.user_service import UserService


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Every call returns an independent application: the event store,
    the attendee store and the session registry are attached to
    ``app.state`` and shared by nothing else.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that the services
    # created below can log.
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)

    sessions = SessionRegistry(token_check=token_is_valid)
    events = EventDraftStore(field_id_strategy=settings.field_id_strategy)
    app.state.settings = settings
    app.state.sessions = sessions
    app.state.events = events
    app.state.rsvps = RsvpService(events)
    app.state.users = UserService(sessions)

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok", "version": settings.api_version}

    logging.getLogger(__name__).info("%s %s ready", settings.project_name, settings.api_version)
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
