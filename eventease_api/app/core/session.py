"""
Explicit authentication sessions.

An ``AuthSession`` is an object with a visible lifecycle: ``init``
restores a persisted user from its key‑value store, ``login`` stores
one and ``logout`` clears both the store and the in‑memory state.  The
store is anything with ``get``/``set``/``delete``; the in‑memory
implementation here stands in for a browser's local storage.

``SessionRegistry`` is the server side view: it maps bearer tokens to
live sessions.  The application creates one registry and hands it to
the route guard; nothing reaches for a module‑level session.
"""

import json
import logging
import threading
from typing import Callable, Dict, Optional, Protocol

from ..schemas.user import UserRead


logger = logging.getLogger(__name__)

USER_KEY = "user"
TOKEN_KEY = "token"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    """Dictionary backed ``KeyValueStore``."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class AuthSession:
    """One user's login state, persisted in a ``KeyValueStore``."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.user: Optional[UserRead] = None
        self.token: Optional[str] = None
        self.initialised = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def init(self) -> Optional[UserRead]:
        """Restore the persisted user, if any.

        A stored value that no longer parses is removed rather than
        trusted.
        """
        raw_user = self.store.get(USER_KEY)
        self.user = None
        self.token = None
        if raw_user:
            try:
                self.user = UserRead.model_validate(json.loads(raw_user))
                self.token = self.store.get(TOKEN_KEY)
            except ValueError:
                logger.warning("Discarding unreadable persisted session")
                self.store.delete(USER_KEY)
                self.store.delete(TOKEN_KEY)
        self.initialised = True
        return self.user

    def login(self, user: UserRead, token: str) -> None:
        self.user = user
        self.token = token
        self.store.set(USER_KEY, user.model_dump_json())
        self.store.set(TOKEN_KEY, token)

    def logout(self) -> None:
        self.user = None
        self.token = None
        self.store.delete(USER_KEY)
        self.store.delete(TOKEN_KEY)


class SessionRegistry:
    """Live sessions keyed by bearer token.

    ``token_check`` tells whether a token is still valid.  When given,
    sessions whose token has expired are dropped as soon as they are
    looked up, and all of them whenever a new session opens.
    """

    def __init__(self, token_check: Optional[Callable[[str], bool]] = None):
        self._sessions: Dict[str, AuthSession] = {}
        self._lock = threading.Lock()
        self._token_check = token_check

    def _expired(self, token: str) -> bool:
        return self._token_check is not None and not self._token_check(token)

    def _drop(self, token: str) -> None:
        session = self._sessions.pop(token)
        email = session.user.email if session.user else "unknown"
        session.logout()
        logger.info("Expired session dropped for %s", email)

    def open(self, user: UserRead, token: str, store: Optional[KeyValueStore] = None) -> AuthSession:
        session = AuthSession(store if store is not None else MemoryKeyValueStore())
        session.init()
        session.login(user, token)
        with self._lock:
            for stale in [t for t in self._sessions if self._expired(t)]:
                self._drop(stale)
            self._sessions[token] = session
        logger.info("Session opened for %s (%s)", user.email, user.role.value)
        return session

    def resolve(self, token: str) -> Optional[AuthSession]:
        with self._lock:
            if token in self._sessions and self._expired(token):
                self._drop(token)
            return self._sessions.get(token)

    def close(self, token: str) -> bool:
        """Log out and forget the session.  Returns ``False`` if unknown."""
        with self._lock:
            session = self._sessions.pop(token, None)
        if session is None:
            return False
        email = session.user.email if session.user else "unknown"
        session.logout()
        logger.info("Session closed for %s", email)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
