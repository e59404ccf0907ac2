"""Utility functions for time handling.

Event and history timestamps are UTC and timezone-aware, rendered as
ISO-8601 strings via iso_now(). Risp programs read the local wall clock
through the scheduler's clock instead.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def iso_from_timestamp(ts: float, *, timespec: str = "seconds") -> str:
    """Render a POSIX timestamp as an aware UTC ISO8601 string."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec=timespec)
