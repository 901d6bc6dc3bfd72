"""
Identifier sources for custom fields.

Each event owns one source.  Identifiers are unique within the event
and never handed out twice, even after the field that used one has
been removed.
"""

import itertools
import uuid
from typing import Protocol


class FieldIdSource(Protocol):
    def next_id(self) -> str:
        ...


class CounterFieldIdSource:
    """Yield ``field_1``, ``field_2``, ... in order."""

    def __init__(self, prefix: str = "field_", start: int = 1):
        self._prefix = prefix
        self._counter = itertools.count(start)

    def next_id(self) -> str:
        return f"{self._prefix}{next(self._counter)}"


class UuidFieldIdSource:
    """Yield ``field_<uuid4 hex>`` identifiers."""

    def __init__(self, prefix: str = "field_"):
        self._prefix = prefix

    def next_id(self) -> str:
        return f"{self._prefix}{uuid.uuid4().hex}"


def make_field_id_source(strategy: str) -> FieldIdSource:
    """Return a new source for ``strategy`` (``counter`` or ``uuid``)."""
    strategy = (strategy or "counter").lower()
    if strategy == "counter":
        return CounterFieldIdSource()
    if strategy == "uuid":
        return UuidFieldIdSource()
    raise ValueError(f"Unknown field id strategy '{strategy}'")
