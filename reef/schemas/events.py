from typing import Any, Literal

from pydantic import BaseModel, Field

from reef.enums.events import FailureKind

TickOutcome = Literal["committed", "failed", "skipped"]


class ChannelValuePayload(BaseModel):
    """Payload for a committed channel value."""

    schema_version: int = Field(default=1)

    channel: str
    direction: str
    locality: str
    # value_to_dict(): {"kind", "value", "text"}
    value: dict[str, Any]
    previous: dict[str, Any] | None = None
    changed: bool = True
    duration_ms: float = 0.0
    timestamp: str


class ChannelFailurePayload(BaseModel):
    """Payload for a failed tick or failed device write."""

    schema_version: int = Field(default=1)

    channel: str
    direction: str
    locality: str
    kind: FailureKind
    error: dict[str, Any]
    consecutive_failures: int = 0
    # True when the value was committed but the device write failed
    committed: bool = False
    duration_ms: float = 0.0
    timestamp: str


class ChannelSkippedPayload(BaseModel):
    channel: str
    reason: str
    skipped_total: int = 0
    timestamp: str


class ChannelRejectedPayload(BaseModel):
    """A channel dropped at registry build."""

    channel: str
    error: str
    timestamp: str


class SchedulerLifecyclePayload(BaseModel):
    channels: int
    running: bool
    timestamp: str
