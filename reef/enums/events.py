from enum import Enum


class ChannelEvent(str, Enum):
    """EventBus topics published by the tick scheduler."""

    VALUE_COMMITTED = "channel_value_committed"
    TICK_FAILED = "channel_tick_failed"
    TICK_SKIPPED = "channel_tick_skipped"
    CHANNEL_REJECTED = "channel_rejected"


class SchedulerEvent(str, Enum):
    STARTED = "scheduler_started"
    STOPPED = "scheduler_stopped"


class FailureKind(str, Enum):
    """Coarse classification of a failed tick, used for log levels and alerting."""

    UNDEFINED = "undefined"
    PROGRAM_ERROR = "program_error"
    DEVICE_ERROR = "device_error"
    DEVICE_TIMEOUT = "device_timeout"
    UNEXPECTED = "unexpected"


EventType = ChannelEvent | SchedulerEvent
