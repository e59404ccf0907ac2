"""
Driver Factory

Creates device drivers for physical channels from their ``driver`` block.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from reef.config import AppConfig, load_config
from reef.domain.exceptions import ConfigurationError
from reef.enums.channels import Direction, DriverType
from reef.hardware.actuators.relays.gpio_relay import GPIORelay
from reef.hardware.adapters.actuators.mqtt_adapter import MQTTOutletAdapter
from reef.hardware.sensors.drivers.ezo_rtd import DEFAULT_ADDRESS, EzoRtdDriver, SMBusTransport
from reef.schemas.channels import ChannelConfig

logger = logging.getLogger(__name__)

_INPUT_DRIVERS = {DriverType.EZO_RTD}
_OUTPUT_DRIVERS = {DriverType.GPIO_RELAY, DriverType.MQTT_OUTLET}


class DriverFactory:
    """
    Factory for channel drivers.

    I2C buses and the MQTT connection are opened lazily on first use and
    shared between channels; :meth:`close` releases them.

    Usage:
        factory = DriverFactory(config)
        registry = ChannelRegistry.from_config(channels, driver_factory=factory.create_driver)
    """

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        *,
        mqtt_client: Any = None,
        transport_factory: Callable[[int], Any] = SMBusTransport,
        gpio: Any = None,
    ):
        """
        Args:
            app_config: Runtime settings (I2C bus, MQTT broker)
            mqtt_client: Pre-connected MQTT client; connected on demand if None
            transport_factory: Opens an I2C transport for a bus number
            gpio: GPIO module override for relays
        """
        self.app_config = app_config or load_config()
        self.mqtt_client = mqtt_client
        self._owns_mqtt = False
        self._transport_factory = transport_factory
        self._transports: dict[int, Any] = {}
        self._gpio = gpio
        self._lock = threading.Lock()

    def create_driver(self, config: ChannelConfig) -> Any:
        """
        Create the driver for one physical channel.

        Raises:
            ConfigurationError: missing driver block, wrong direction for the
                driver type or missing driver settings.
            DeviceError: the device or bus could not be opened.
        """
        driver_config = config.driver
        if driver_config is None:
            raise ConfigurationError(f"Channel '{config.name}' has no driver block", detail={"channel": config.name})

        driver_type = driver_config.type
        allowed = _INPUT_DRIVERS if config.direction == Direction.INPUT else _OUTPUT_DRIVERS
        if driver_type not in allowed:
            raise ConfigurationError(
                f"Driver '{driver_type.value}' cannot serve {config.direction.value} channel '{config.name}'",
                detail={"channel": config.name, "driver": driver_type.value},
            )

        if driver_type == DriverType.EZO_RTD:
            driver = self._create_ezo_rtd(config)
        elif driver_type == DriverType.GPIO_RELAY:
            driver = self._create_gpio_relay(config)
        elif driver_type == DriverType.MQTT_OUTLET:
            driver = self._create_mqtt_outlet(config)
        else:
            raise ConfigurationError(f"Unsupported driver type: {driver_type}")

        logger.info("Created %s driver for channel %s", driver_type.value, config.name)
        return driver

    def _create_ezo_rtd(self, config: ChannelConfig) -> EzoRtdDriver:
        settings = config.driver
        bus = settings.bus if settings.bus is not None else self.app_config.i2c_bus
        address = settings.address if settings.address is not None else DEFAULT_ADDRESS
        return EzoRtdDriver(self._transport(bus), address, name=config.name)

    def _create_gpio_relay(self, config: ChannelConfig) -> GPIORelay:
        settings = config.driver
        if settings.pin is None:
            raise ConfigurationError(
                f"Channel '{config.name}': gpio_relay requires 'pin'",
                detail={"channel": config.name},
            )
        return GPIORelay(config.name, settings.pin, active_low=settings.active_low, gpio=self._gpio)

    def _create_mqtt_outlet(self, config: ChannelConfig) -> MQTTOutletAdapter:
        settings = config.driver
        if not settings.topic:
            raise ConfigurationError(
                f"Channel '{config.name}': mqtt_outlet requires 'topic'",
                detail={"channel": config.name},
            )
        return MQTTOutletAdapter(
            config.name,
            self._mqtt(),
            settings.topic,
            qos=settings.qos,
            retain=settings.retain,
        )

    def _transport(self, bus: int) -> Any:
        with self._lock:
            if bus not in self._transports:
                self._transports[bus] = self._transport_factory(bus)
            return self._transports[bus]

    def _mqtt(self) -> Any:
        with self._lock:
            if self.mqtt_client is None:
                from reef.hardware.mqtt.client_factory import connect_mqtt_client

                self.mqtt_client = connect_mqtt_client(
                    self.app_config.mqtt_broker_host,
                    self.app_config.mqtt_broker_port,
                )
                self._owns_mqtt = True
            return self.mqtt_client

    def close(self) -> None:
        """Release shared buses and the MQTT connection opened by this factory."""
        with self._lock:
            transports = list(self._transports.values())
            self._transports.clear()
            client = self.mqtt_client if self._owns_mqtt else None
            if client is not None:
                self.mqtt_client = None
                self._owns_mqtt = False

        for transport in transports:
            close = getattr(transport, "close", None)
            if callable(close):
                try:
                    close()
                except OSError as exc:
                    logger.warning("Error closing I2C transport: %s", exc)
        if client is not None:
            client.loop_stop()
            client.disconnect()
            logger.info("Disconnected from MQTT broker")
