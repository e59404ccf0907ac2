"""
Risp Runtime Values
===================
Closed tagged union of the values a Risp program can produce or read.

Precision
---------
- ``Number`` holds an IEEE-754 double. Integer literals become the same
  double, so ``80`` and ``80.0`` compare equal. Equality is exact.
- ``Duration`` holds a signed span in whole seconds.
- ``Instant`` holds whole seconds. Absolute instants count seconds since the
  Unix epoch on the controller's *local* wall clock (so ``seconds % 86400``
  is the local time of day). Clock instants (``of_day=True``, written
  ``HH:MM:SS``) count seconds since local midnight.

Values are frozen dataclasses; nothing mutates them after construction.
"""

from __future__ import annotations

import calendar
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Union

SECONDS_PER_DAY = 86_400

_EPOCH = datetime(1970, 1, 1)

_DURATION_RE = re.compile(
    r"^(?P<sign>-)?P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<secs>\d+)S)?)?$"
)


@dataclass(frozen=True)
class Number:
    value: float

    kind = "number"

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))

    def to_text(self) -> str:
        if math.isfinite(self.value) and self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)

    def to_python(self) -> float:
        return self.value


@dataclass(frozen=True)
class Boolean:
    value: bool

    kind = "boolean"

    def to_text(self) -> str:
        return "true" if self.value else "false"

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True)
class Duration:
    seconds: int

    kind = "duration"

    def __post_init__(self) -> None:
        object.__setattr__(self, "seconds", int(self.seconds))

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> "Duration":
        return cls(round(delta.total_seconds()))

    @classmethod
    def parse(cls, text: str) -> "Duration | None":
        """Parse ISO-8601 style ``[-]P[nD][T[nH][nM][nS]]``; None if malformed."""
        match = _DURATION_RE.match(text)
        if not match:
            return None
        parts = match.groupdict()
        if not any(parts[name] for name in ("days", "hours", "minutes", "secs")):
            return None
        if text.endswith("T"):
            return None
        total = (
            int(parts["days"] or 0) * SECONDS_PER_DAY
            + int(parts["hours"] or 0) * 3600
            + int(parts["minutes"] or 0) * 60
            + int(parts["secs"] or 0)
        )
        return cls(-total if parts["sign"] else total)

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.seconds)

    def to_text(self) -> str:
        remaining = abs(self.seconds)
        days, remaining = divmod(remaining, SECONDS_PER_DAY)
        hours, remaining = divmod(remaining, 3600)
        minutes, secs = divmod(remaining, 60)

        text = "-P" if self.seconds < 0 else "P"
        if days:
            text += f"{days}D"
        clock = ""
        if hours:
            clock += f"{hours}H"
        if minutes:
            clock += f"{minutes}M"
        if secs or (not days and not clock):
            clock += f"{secs}S"
        if clock:
            text += "T" + clock
        return text

    def to_python(self) -> int:
        return self.seconds


@dataclass(frozen=True)
class Instant:
    seconds: int
    of_day: bool = False

    kind = "instant"

    def __post_init__(self) -> None:
        seconds = int(self.seconds)
        if self.of_day:
            seconds %= SECONDS_PER_DAY
        object.__setattr__(self, "seconds", seconds)

    @classmethod
    def from_datetime(cls, moment: datetime) -> "Instant":
        """Build an absolute instant from a datetime, using its local wall-clock reading."""
        if moment.tzinfo is not None:
            moment = moment.astimezone().replace(tzinfo=None)
        return cls(calendar.timegm(moment.timetuple()))

    @classmethod
    def clock(cls, hour: int, minute: int = 0, second: int = 0) -> "Instant":
        return cls(hour * 3600 + minute * 60 + second, of_day=True)

    @property
    def time_of_day(self) -> int:
        """Seconds since local midnight."""
        return self.seconds % SECONDS_PER_DAY

    def to_datetime(self) -> datetime:
        return _EPOCH + timedelta(seconds=self.seconds)

    def to_text(self) -> str:
        if self.of_day:
            hours, remaining = divmod(self.seconds, 3600)
            minutes, secs = divmod(remaining, 60)
            return f"{hours:02d}:{minutes:02d}:{secs:02d}"
        return self.to_datetime().isoformat()

    def to_python(self) -> str:
        return self.to_text()


Value = Union[Number, Boolean, Duration, Instant]

VALUE_TYPES = (Number, Boolean, Duration, Instant)

TRUE = Boolean(True)
FALSE = Boolean(False)


def is_value(obj: Any) -> bool:
    return isinstance(obj, VALUE_TYPES)


def kind_of(obj: Any) -> str:
    """Kind name used in error messages; falls back to the Python type name."""
    return getattr(obj, "kind", type(obj).__name__)


def coerce_value(raw: Any) -> Value:
    """
    Convert a plain Python reading into a Value.

    Drivers and the config layer hand over bool/int/float/timedelta/datetime;
    Values pass through unchanged.
    """
    if is_value(raw):
        return raw
    if isinstance(raw, bool):
        return Boolean(raw)
    if isinstance(raw, (int, float)):
        return Number(raw)
    if isinstance(raw, timedelta):
        return Duration.from_timedelta(raw)
    if isinstance(raw, datetime):
        return Instant.from_datetime(raw)
    raise TypeError(f"Cannot convert {type(raw).__name__} to a Risp value")


def value_to_dict(value: Value) -> dict[str, Any]:
    """JSON-ready view of a value for the state query interface."""
    return {"kind": value.kind, "value": value.to_python(), "text": value.to_text()}


__all__ = [
    "FALSE",
    "SECONDS_PER_DAY",
    "TRUE",
    "VALUE_TYPES",
    "Boolean",
    "Duration",
    "Instant",
    "Number",
    "Value",
    "coerce_value",
    "is_value",
    "kind_of",
    "value_to_dict",
]
