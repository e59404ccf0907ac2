"""
Channel-related Enumerations
============================

This module contains the enums describing channels and their tick lifecycle.
"""

from enum import Enum


class Direction(str, Enum):
    """Whether a channel produces readings or consumes a program result."""

    INPUT = "input"
    OUTPUT = "output"

    @classmethod
    def _missing_(cls, value: object) -> "Direction | None":
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


class Locality(str, Enum):
    """Physical channels talk to a device driver; virtual ones do not."""

    PHYSICAL = "physical"
    VIRTUAL = "virtual"

    @classmethod
    def _missing_(cls, value: object) -> "Locality | None":
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


class ChannelState(str, Enum):
    """
    Per-channel tick state.

    IDLE -> DUE -> RUNNING -> {COMMITTED | FAILED} -> IDLE
    """

    IDLE = "idle"
    DUE = "due"
    RUNNING = "running"
    COMMITTED = "committed"
    FAILED = "failed"


class TickStatus(str, Enum):
    """Outcome of one channel run."""

    COMMITTED = "committed"
    FAILED = "failed"
    SKIPPED = "skipped"


class DriverType(str, Enum):
    EZO_RTD = "ezo_rtd"
    GPIO_RELAY = "gpio_relay"
    MQTT_OUTLET = "mqtt_outlet"
