"""
Channel Registry
================
The set of channels known to the controller, built once from the channel
file before the scheduler starts.

Building is forgiving by default: a channel whose program does not parse,
whose declaration is inconsistent or whose driver cannot be created is
recorded in ``rejected`` and logged, and the remaining channels still run.
``strict=True`` turns the first rejection into an exception (``--check``).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator, Optional

from reef.domain.channels.channel_entity import Channel
from reef.domain.exceptions import ConfigurationError, ReefError
from reef.enums.channels import Locality
from reef.risp.nodes import Literal, referenced_symbols
from reef.risp.parser import is_symbol_name, parse
from reef.risp.values import Boolean, Duration, Number, Value
from reef.schemas.channels import ChannelConfig, ReefConfigFile

logger = logging.getLogger(__name__)

DriverFactory = Callable[[ChannelConfig], Any]


def literal_setting(raw: Any, *, field: str = "value") -> Value:
    """
    Convert a JSON literal setting to a Value.

    Booleans and numbers map directly; strings are read as a single Risp
    literal (``"PT5M"``, ``"08:30:00"``, ``"true"``).
    """
    if isinstance(raw, bool):
        return Boolean(raw)
    if isinstance(raw, (int, float)):
        return Number(raw)
    if isinstance(raw, str):
        node = parse(raw)
        if isinstance(node, Literal):
            return node.value
    raise ConfigurationError(f"{field} must be a literal, got {raw!r}", detail={"field": field})


class ChannelRegistry:
    """Channels keyed by unique name, iterated in declaration order."""

    def __init__(self, channels: Iterable[Channel] = ()) -> None:
        self._channels: dict[str, Channel] = {}
        self.rejected: dict[str, str] = {}
        for channel in channels:
            self.add(channel)

    @classmethod
    def from_config(
        cls,
        config: ReefConfigFile,
        *,
        driver_factory: Optional[DriverFactory] = None,
        strict: bool = False,
    ) -> "ChannelRegistry":
        """
        Build a registry from a validated channel file.

        Args:
            config: Parsed channel file
            driver_factory: Creates a driver for a physical channel; defaults
                to a fresh :class:`reef.hardware.factory.DriverFactory`
            strict: Raise on the first rejected channel instead of skipping it
        """
        if driver_factory is None:
            from reef.hardware.factory import DriverFactory

            driver_factory = DriverFactory().create_driver

        registry = cls()
        for channel_config in config.channels:
            if not channel_config.enabled:
                logger.info("Channel '%s' is disabled, not scheduling it", channel_config.name)
                continue
            channel = None
            try:
                registry._check_name(channel_config.name)
                channel = _build_channel(channel_config, driver_factory)
                registry.add(channel)
            except ReefError as exc:
                if channel is not None:
                    _release_driver(channel.name, channel.driver)
                if strict:
                    registry.cleanup_drivers()
                    raise
                registry.rejected[channel_config.name] = str(exc)
                logger.error("Rejected channel '%s': %s", channel_config.name, exc)

        registry.warn_dangling_references()
        logger.info(
            "Channel registry built: %d channel(s), %d rejected",
            len(registry),
            len(registry.rejected),
        )
        return registry

    def add(self, channel: Channel) -> None:
        self._check_name(channel.name)
        channel.validate()
        self._channels[channel.name] = channel

    def _check_name(self, name: str) -> None:
        if name in self._channels:
            raise ConfigurationError(f"Duplicate channel name '{name}'", detail={"channel": name})
        if not is_symbol_name(name):
            raise ConfigurationError(
                f"Channel '{name}': name is reserved or cannot be read by programs",
                detail={"channel": name},
            )

    def get(self, name: str) -> Optional[Channel]:
        return self._channels.get(name)

    def __getitem__(self, name: str) -> Channel:
        return self._channels[name]

    def __contains__(self, name: object) -> bool:
        return name in self._channels

    def __iter__(self) -> Iterator[Channel]:
        return iter(list(self._channels.values()))

    def __len__(self) -> int:
        return len(self._channels)

    def names(self) -> list[str]:
        return list(self._channels)

    def inputs(self) -> list[Channel]:
        return [c for c in self._channels.values() if c.is_input]

    def outputs(self) -> list[Channel]:
        return [c for c in self._channels.values() if c.is_output]

    def cleanup_drivers(self) -> None:
        """Release per-channel driver resources (GPIO pins, owned buses)."""
        for channel in self._channels.values():
            _release_driver(channel.name, channel.driver)

    def warn_dangling_references(self) -> dict[str, set[str]]:
        """Log programs that read names no channel provides; they stay Undefined forever."""
        dangling: dict[str, set[str]] = {}
        for channel in self.outputs():
            missing = referenced_symbols(channel.program) - set(self._channels)
            if missing:
                dangling[channel.name] = missing
                logger.warning(
                    "Channel '%s' reads unknown channel(s): %s",
                    channel.name,
                    ", ".join(sorted(missing)),
                )
        return dangling


def _build_channel(config: ChannelConfig, driver_factory: DriverFactory) -> Channel:
    program = parse(config.program) if config.program is not None else None
    initial = literal_setting(config.initial, field="initial") if config.initial is not None else None
    value = literal_setting(config.value, field="value") if config.value is not None else None

    driver = None
    if config.driver is not None:
        if config.locality == Locality.VIRTUAL:
            raise ConfigurationError(
                f"Channel '{config.name}': virtual channel cannot have a driver",
                detail={"channel": config.name},
            )
        driver = driver_factory(config)

    return Channel(
        name=config.name,
        direction=config.direction,
        locality=config.locality,
        period=Duration(config.period),
        program=program,
        source=config.program,
        driver=driver,
        initial=initial,
        value=value,
    )


def _release_driver(name: str, driver: Any) -> None:
    cleanup = getattr(driver, "cleanup", None)
    if callable(cleanup):
        try:
            cleanup()
        except ReefError as exc:
            logger.warning("Cleanup of channel '%s' failed: %s", name, exc)
