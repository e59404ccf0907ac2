"""
ReefState
=========
Shared store mapping channel name to its last committed value.

The scheduler is the only writer. Evaluators receive point-in-time snapshots
and never see a partially applied commit.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping

from reef.risp.values import Value, is_value, value_to_dict
from reef.utils.time import utc_now

logger = logging.getLogger(__name__)


class ReefState:
    """Thread-safe mapping of channel name -> last committed Value."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: dict[str, Value] = {}
        self._committed_at: dict[str, datetime] = {}

    def get(self, name: str) -> Value | None:
        """Return the last committed value, or None before the first commit."""
        with self._lock:
            return self._values.get(name)

    def commit(self, name: str, value: Value) -> Value | None:
        """
        Replace ``name``'s value atomically.

        Returns:
            The value it replaced (None on first commit).

        Raises:
            TypeError: if ``value`` is not a Risp value.
        """
        if not is_value(value):
            raise TypeError(f"ReefState only stores Risp values, got {type(value).__name__}")
        with self._lock:
            previous = self._values.get(name)
            self._values[name] = value
            self._committed_at[name] = utc_now()
        logger.debug("Committed %s = %s", name, value.to_text())
        return previous

    def snapshot(self) -> Mapping[str, Value]:
        """Point-in-time read-only copy of every committed value."""
        with self._lock:
            return MappingProxyType(dict(self._values))

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._values)

    def committed_at(self, name: str) -> datetime | None:
        with self._lock:
            return self._committed_at.get(name)

    def as_dict(self) -> dict[str, dict[str, Any]]:
        """JSON-ready view: ``{name: {kind, value, text, committed_at}}``."""
        with self._lock:
            items = [(name, value, self._committed_at.get(name)) for name, value in self._values.items()]
        return {
            name: {
                **value_to_dict(value),
                "committed_at": committed.isoformat() if committed else None,
            }
            for name, value, committed in sorted(items, key=lambda item: item[0])
        }

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)
