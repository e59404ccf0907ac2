"""
Shared test fixtures for the reef controller test suite.

Provides:
- Mock EventBus that records publish calls
- A manual clock for driving the tick scheduler deterministically
- A registry builder that wires channel dicts to fake drivers

Usage:
    def test_example(make_registry, mock_event_bus, manual_clock):
        registry = make_registry([...], drivers={"Heater": outlet})
        scheduler = TickScheduler(registry, event_bus=mock_event_bus, clock=manual_clock)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable
from unittest.mock import MagicMock

import pytest

from reef.domain.channels.registry import ChannelRegistry
from reef.domain.exceptions import DeviceError
from reef.schemas.channels import ReefConfigFile

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("reef").setLevel(logging.WARNING)
logging.getLogger("infrastructure").setLevel(logging.WARNING)


class ManualClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


# ========================== Mock Service Fixtures ==========================


@pytest.fixture()
def mock_event_bus():
    """Mock EventBus that records publish calls."""
    bus = MagicMock()
    bus.publish = MagicMock()
    bus.subscribe = MagicMock()
    return bus


@pytest.fixture()
def published(mock_event_bus):
    """Return the payload dicts published on the mock bus for one topic."""

    def _published(event) -> list[dict]:
        return [
            call.args[1].model_dump(mode="json")
            for call in mock_event_bus.publish.call_args_list
            if call.args[0] == event
        ]

    return _published


# ========================== Clock Fixtures =================================


@pytest.fixture()
def noon_ts() -> float:
    """Local 12:00:00 on a fixed day, as epoch seconds (a multiple of 60)."""
    return datetime(2026, 1, 15, 12, 0, 0).timestamp()


@pytest.fixture()
def manual_clock(noon_ts):
    return ManualClock(noon_ts)


# ========================== Registry Fixtures ==============================


@pytest.fixture()
def make_registry():
    """Build a ChannelRegistry from plain channel dicts and a name -> driver map."""

    def _make(channels: Iterable[dict], drivers: dict[str, Any] | None = None, **kwargs) -> ChannelRegistry:
        drivers = drivers or {}

        def factory(config):
            if config.name not in drivers:
                raise DeviceError(f"no fake driver for {config.name}")
            return drivers[config.name]

        config = ReefConfigFile.model_validate({"channels": list(channels)})
        return ChannelRegistry.from_config(config, driver_factory=factory, **kwargs)

    return _make
