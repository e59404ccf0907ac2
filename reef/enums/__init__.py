from reef.enums.channels import ChannelState, Direction, DriverType, Locality, TickStatus
from reef.enums.events import ChannelEvent, EventType, FailureKind, SchedulerEvent

__all__ = [
    "ChannelEvent",
    "ChannelState",
    "Direction",
    "DriverType",
    "EventType",
    "FailureKind",
    "Locality",
    "SchedulerEvent",
    "TickStatus",
]
