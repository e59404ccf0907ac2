from unittest.mock import MagicMock

import pytest

from reef.domain.channels.channel_entity import Channel
from reef.domain.channels.registry import ChannelRegistry, literal_setting
from reef.domain.exceptions import ConfigurationError
from reef.enums.channels import Direction, Locality
from reef.risp.errors import RispSyntaxError
from reef.risp.values import Boolean, Duration, Instant, Number
from reef.schemas.channels import ReefConfigFile


def _outlet():
    outlet = MagicMock(spec=["write", "cleanup"])
    return outlet


def _sensor():
    return MagicMock(spec=["read", "cleanup"])


TEMPERATURE = {
    "name": "Tank_Temperature",
    "direction": "input",
    "locality": "physical",
    "period": 10,
    "driver": {"type": "ezo_rtd"},
}
HEATER = {
    "name": "Heater_Outlet",
    "direction": "output",
    "locality": "physical",
    "period": 30,
    "initial": 0,
    "program": "(cond ((> Tank_Temperature 82) (0)) ((< Tank_Temperature 78) (1)) (t Heater_Outlet))",
    "driver": {"type": "gpio_relay", "pin": 17},
}


def test_builds_channels_in_declaration_order(make_registry):
    registry = make_registry(
        [TEMPERATURE, HEATER],
        drivers={"Tank_Temperature": _sensor(), "Heater_Outlet": _outlet()},
    )

    assert registry.names() == ["Tank_Temperature", "Heater_Outlet"]
    assert [c.name for c in registry.inputs()] == ["Tank_Temperature"]
    heater = registry["Heater_Outlet"]
    assert heater.period == Duration(30)
    assert heater.initial == Number(0)
    assert heater.source == HEATER["program"]
    assert registry.rejected == {}


def test_unparseable_program_is_rejected_not_scheduled(make_registry):
    broken = {**HEATER, "program": "(cond ((> Tank_Temperature 82) 0)"}

    registry = make_registry(
        [TEMPERATURE, broken],
        drivers={"Tank_Temperature": _sensor(), "Heater_Outlet": _outlet()},
    )

    assert "Heater_Outlet" not in registry
    assert "never closed" in registry.rejected["Heater_Outlet"]
    assert len(registry) == 1


def test_strict_build_raises(make_registry):
    broken = {**HEATER, "program": "(bogus 1)"}

    with pytest.raises(RispSyntaxError):
        make_registry([broken], drivers={"Heater_Outlet": _outlet()}, strict=True)


@pytest.mark.parametrize(
    "channel, fragment",
    [
        ({**HEATER, "program": None}, "requires a program"),
        ({**TEMPERATURE, "program": "(+ 1 2)"}, "cannot have a program"),
        ({**TEMPERATURE, "locality": "virtual", "driver": None}, "requires a value"),
        ({**HEATER, "locality": "virtual"}, "cannot have a driver"),
    ],
)
def test_inconsistent_declarations_are_rejected(make_registry, channel, fragment):
    registry = make_registry([channel], drivers={"Tank_Temperature": _sensor(), "Heater_Outlet": _outlet()})

    assert fragment in registry.rejected[channel["name"]]


def test_driver_failure_rejects_channel(make_registry):
    registry = make_registry([TEMPERATURE])

    assert "no fake driver" in registry.rejected["Tank_Temperature"]


def test_output_driver_must_write(make_registry):
    registry = make_registry([HEATER], drivers={"Heater_Outlet": _sensor()})

    assert "write(value)" in registry.rejected["Heater_Outlet"]


def test_disabled_channels_are_skipped(make_registry):
    registry = make_registry([{**TEMPERATURE, "enabled": False}])

    assert len(registry) == 0
    assert registry.rejected == {}


def test_duplicate_names_rejected(make_registry):
    registry = make_registry(
        [TEMPERATURE, TEMPERATURE],
        drivers={"Tank_Temperature": _sensor()},
    )

    assert len(registry) == 1
    assert "Duplicate" in registry.rejected["Tank_Temperature"]


def test_dangling_references_are_reported(make_registry):
    registry = make_registry([HEATER], drivers={"Heater_Outlet": _outlet()})

    assert registry.warn_dangling_references() == {"Heater_Outlet": {"Tank_Temperature"}}


def test_virtual_input_literals(make_registry):
    registry = make_registry(
        [
            {"name": "Lights_On", "direction": "input", "locality": "virtual", "period": 60, "value": "08:30:00"},
            {"name": "Feed_Pause", "direction": "input", "locality": "virtual", "period": 60, "value": "PT15M"},
            {"name": "Maintenance", "direction": "input", "locality": "virtual", "period": 60, "value": True},
        ]
    )

    assert registry["Lights_On"].value == Instant.clock(8, 30)
    assert registry["Feed_Pause"].value == Duration(900)
    assert registry["Maintenance"].value == Boolean(True)


def test_literal_setting_rejects_expressions():
    with pytest.raises(ConfigurationError):
        literal_setting("(+ 1 2)")


def test_cleanup_drivers_calls_each_driver(make_registry):
    sensor, outlet = _sensor(), _outlet()
    registry = make_registry([TEMPERATURE, HEATER], drivers={"Tank_Temperature": sensor, "Heater_Outlet": outlet})

    registry.cleanup_drivers()

    sensor.cleanup.assert_called_once_with()
    outlet.cleanup.assert_called_once_with()


def test_channel_validate_rejects_non_positive_period():
    channel = Channel(
        name="Dosing",
        direction=Direction.INPUT,
        locality=Locality.VIRTUAL,
        period=Duration(0),
        value=Number(1),
    )

    with pytest.raises(ConfigurationError, match="period must be positive"):
        ChannelRegistry([channel])


def test_duplicate_name_is_rejected_before_its_driver_is_created():
    first, second = _outlet(), _outlet()
    created = []

    def factory(config):
        driver = first if not created else second
        created.append(config.driver.pin)
        return driver

    config = ReefConfigFile.model_validate(
        {
            "channels": [
                {**HEATER, "name": "Heater"},
                {**HEATER, "name": "Heater", "driver": {"type": "gpio_relay", "pin": 18}},
            ]
        }
    )
    registry = ChannelRegistry.from_config(config, driver_factory=factory)
    registry.cleanup_drivers()

    assert created == [17]
    assert "Duplicate" in registry.rejected["Heater"]
    first.cleanup.assert_called_once_with()
    second.cleanup.assert_not_called()


def test_rejected_channel_releases_its_driver(make_registry):
    sensor = _sensor()

    registry = make_registry([HEATER], drivers={"Heater_Outlet": sensor})

    assert "Heater_Outlet" in registry.rejected
    sensor.cleanup.assert_called_once_with()


def test_strict_failure_releases_drivers_already_added(make_registry):
    sensor = _sensor()
    broken = {**HEATER, "program": "(bogus 1)"}

    with pytest.raises(RispSyntaxError):
        make_registry(
            [TEMPERATURE, broken],
            drivers={"Tank_Temperature": sensor, "Heater_Outlet": _outlet()},
            strict=True,
        )

    sensor.cleanup.assert_called_once_with()


@pytest.mark.parametrize("name", ["now", "t", "true", "false", "if", "cond", "and", "add", "rem", "not", "PT5M", "P1H"])
def test_names_programs_cannot_read_are_rejected(make_registry, name):
    registry = make_registry(
        [{"name": name, "direction": "input", "locality": "virtual", "period": 60, "value": 1}]
    )

    assert len(registry) == 0
    assert "cannot be read by programs" in registry.rejected[name]


def test_reserved_name_is_rejected_before_its_driver_is_created():
    factory = MagicMock(return_value=_sensor())
    config = ReefConfigFile.model_validate({"channels": [{**TEMPERATURE, "name": "now"}]})

    registry = ChannelRegistry.from_config(config, driver_factory=factory)

    factory.assert_not_called()
    assert "now" in registry.rejected


def test_channel_validate_rejects_reserved_name():
    channel = Channel(
        name="t",
        direction=Direction.INPUT,
        locality=Locality.VIRTUAL,
        period=Duration(60),
        value=Number(1),
    )

    with pytest.raises(ConfigurationError, match="cannot be read by programs"):
        channel.validate()
