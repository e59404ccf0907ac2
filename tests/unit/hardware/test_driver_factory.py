from unittest.mock import MagicMock

import pytest

from reef.config import AppConfig
from reef.domain.exceptions import ConfigurationError
from reef.hardware.actuators.relays.gpio_relay import GPIORelay
from reef.hardware.adapters.actuators.mqtt_adapter import MQTTOutletAdapter
from reef.hardware.factory import DriverFactory
from reef.hardware.mqtt import client_factory
from reef.hardware.sensors.drivers.ezo_rtd import EzoRtdDriver
from reef.schemas.channels import ChannelConfig


def channel(name, direction, driver):
    return ChannelConfig.model_validate(
        {
            "name": name,
            "direction": direction,
            "locality": "physical",
            "period": 10,
            "program": "(1)" if direction == "output" else None,
            "driver": driver,
        }
    )


@pytest.fixture()
def app_config(monkeypatch):
    monkeypatch.setenv("REEF_I2C_BUS", "3")
    return AppConfig()


def test_ezo_channels_share_one_bus(app_config):
    transport_factory = MagicMock()
    factory = DriverFactory(app_config, transport_factory=transport_factory)

    first = factory.create_driver(channel("Tank_Temperature", "input", {"type": "ezo_rtd"}))
    second = factory.create_driver(channel("Sump_Temperature", "input", {"type": "ezo_rtd", "address": "0x67"}))

    assert isinstance(first, EzoRtdDriver)
    assert first.address == 0x66
    assert second.address == 0x67
    assert first.transport is second.transport
    transport_factory.assert_called_once_with(3)

    factory.close()
    transport_factory.return_value.close.assert_called_once_with()


def test_gpio_relay(app_config):
    gpio = MagicMock()
    factory = DriverFactory(app_config, gpio=gpio)

    relay = factory.create_driver(channel("Heater_Outlet", "output", {"type": "gpio_relay", "pin": 17}))

    assert isinstance(relay, GPIORelay)
    assert relay.pin == 17

    with pytest.raises(ConfigurationError, match="requires 'pin'"):
        factory.create_driver(channel("Return_Pump", "output", {"type": "gpio_relay"}))


def test_mqtt_outlet_uses_supplied_client(app_config):
    client = MagicMock()
    factory = DriverFactory(app_config, mqtt_client=client)

    outlet = factory.create_driver(
        channel("Heater_Outlet", "output", {"type": "mqtt_outlet", "topic": "reef/heater/set", "qos": 0})
    )

    assert isinstance(outlet, MQTTOutletAdapter)
    assert outlet.mqtt_client is client
    assert outlet.qos == 0

    factory.close()
    client.disconnect.assert_not_called()


def test_mqtt_connection_opened_lazily_and_closed(app_config, monkeypatch):
    client = MagicMock()
    connect = MagicMock(return_value=client)
    monkeypatch.setattr(client_factory, "connect_mqtt_client", connect)
    factory = DriverFactory(app_config)

    factory.create_driver(channel("Heater_Outlet", "output", {"type": "mqtt_outlet", "topic": "a/set"}))
    factory.create_driver(channel("Return_Pump", "output", {"type": "mqtt_outlet", "topic": "b/set"}))
    factory.close()

    connect.assert_called_once_with(app_config.mqtt_broker_host, app_config.mqtt_broker_port)
    client.loop_stop.assert_called_once_with()
    client.disconnect.assert_called_once_with()


@pytest.mark.parametrize(
    "direction, driver",
    [
        ("output", {"type": "ezo_rtd"}),
        ("input", {"type": "gpio_relay", "pin": 4}),
        ("input", {"type": "mqtt_outlet", "topic": "x"}),
    ],
)
def test_driver_direction_must_match(app_config, direction, driver):
    factory = DriverFactory(app_config, transport_factory=MagicMock(), gpio=MagicMock(), mqtt_client=MagicMock())

    with pytest.raises(ConfigurationError, match="cannot serve"):
        factory.create_driver(channel("Mismatch", direction, driver))


def test_missing_driver_block(app_config):
    config = ChannelConfig.model_validate({"name": "Probe", "direction": "input", "locality": "physical", "period": 10})

    with pytest.raises(ConfigurationError, match="no driver block"):
        DriverFactory(app_config).create_driver(config)
