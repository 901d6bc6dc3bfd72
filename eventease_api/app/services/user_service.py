"""
Mock authentication.

There is no user database: logging in with any e‑mail and a non‑empty
password yields a user whose role is derived from the address
(``admin`` if it contains "admin", ``staff`` if it contains "staff",
otherwise ``event_owner``).  Registration always yields an
``event_owner``.  The returned token opens a session in the
application's ``SessionRegistry``.
"""

import hashlib
import logging
from typing import Tuple

from ..core.errors import AuthenticationError
from ..core.security import create_access_token
from ..core.session import SessionRegistry
from ..schemas.user import UserRead, UserRole


logger = logging.getLogger(__name__)


def role_for_email(email: str) -> UserRole:
    email = email.lower()
    if "admin" in email:
        return UserRole.ADMIN
    if "staff" in email:
        return UserRole.STAFF
    return UserRole.EVENT_OWNER


def user_id_for_email(email: str) -> str:
    """Stable mock identifier so the same address owns the same events."""
    digest = hashlib.sha256(email.lower().encode("utf-8")).hexdigest()
    return f"user_{digest[:9]}"


class UserService:
    """Mock login, registration and logout on top of a session registry."""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    def _issue(self, user: UserRead) -> Tuple[UserRead, str]:
        token = create_access_token({"sub": user.email, "user_id": user.id, "role": user.role.value})
        self.registry.open(user, token)
        return user, token

    async def login(self, email: str, password: str) -> Tuple[UserRead, str]:
        if not password:
            raise AuthenticationError("Password must not be empty")
        user = UserRead(
            id=user_id_for_email(email),
            email=email,
            name=email.split("@")[0],
            role=role_for_email(email),
        )
        logger.info("User %s logged in", email)
        return self._issue(user)

    async def register(self, email: str, password: str, name: str) -> Tuple[UserRead, str]:
        if not password:
            raise AuthenticationError("Password must not be empty")
        user = UserRead(
            id=user_id_for_email(email),
            email=email,
            name=name.strip(),
            role=UserRole.EVENT_OWNER,
        )
        logger.info("User %s registered", email)
        return self._issue(user)

    async def logout(self, token: str) -> bool:
        return self.registry.close(token)
