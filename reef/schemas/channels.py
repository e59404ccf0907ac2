"""
Channel configuration schemas.

The channel file is JSON::

    {
      "channels": [
        {"name": "Tank_Temperature", "direction": "input", "locality": "physical",
         "period": "PT10S", "driver": {"type": "ezo_rtd", "address": "0x66"}},
        {"name": "Heater_Outlet", "direction": "output", "locality": "physical",
         "period": 30, "initial": false,
         "program": "(cond ((> Tank_Temperature 82) false) ((< Tank_Temperature 78) true) (t Heater_Outlet))",
         "driver": {"type": "gpio_relay", "pin": 17}}
      ]
    }

These models check structure only. Cross-field rules (an output needs a
program, a physical channel needs a driver, programs must parse) are applied
per channel by the registry so one bad channel does not take the rest down.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, field_validator

from reef.enums.channels import Direction, DriverType, Locality
from reef.risp.values import Duration

# A literal as written in JSON: booleans and numbers as-is, durations and
# clock readings as Risp text ("PT5M", "08:30:00").
LiteralSetting = Union[StrictBool, StrictInt, StrictFloat, str]


class DriverConfig(BaseModel):
    """Device driver settings. Which keys apply depends on ``type``."""

    model_config = ConfigDict(extra="forbid")

    type: DriverType
    # I2C
    address: Optional[int] = Field(default=None, ge=0x03, le=0x77, description="7-bit I2C address")
    bus: Optional[int] = Field(default=None, ge=0, description="I2C bus number, defaults to REEF_I2C_BUS")
    # GPIO
    pin: Optional[int] = Field(default=None, ge=0, le=40, description="BCM GPIO pin")
    active_low: bool = False
    # MQTT
    topic: Optional[str] = Field(default=None, min_length=1, max_length=255)
    qos: int = Field(default=1, ge=0, le=2)
    retain: bool = True

    @field_validator("address", mode="before")
    def _coerce_address(cls, v):
        """Accept ``"0x66"`` as well as ``102``."""
        if isinstance(v, str):
            try:
                return int(v, 16) if v.lower().startswith("0x") else int(v)
            except ValueError:
                raise ValueError(f"Invalid I2C address '{v}'") from None
        return v

    @field_validator("type", mode="before")
    def _coerce_type(cls, v):
        if isinstance(v, str):
            return v.lower().replace("-", "_")
        return v


class ChannelConfig(BaseModel):
    """One channel declaration."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., pattern=r"^[A-Za-z_][A-Za-z0-9_.]*$", max_length=64)
    direction: Direction
    locality: Locality
    period: int = Field(..., gt=0, description="Seconds between ticks; accepts seconds or an ISO duration")
    program: Optional[str] = Field(default=None, description="Risp source, outputs only")
    value: Optional[LiteralSetting] = Field(default=None, description="Held value of a virtual input")
    initial: Optional[LiteralSetting] = Field(default=None, description="Prior value before the first commit")
    driver: Optional[DriverConfig] = None
    enabled: bool = True

    @field_validator("period", mode="before")
    def _coerce_period(cls, v):
        if isinstance(v, bool):
            raise ValueError("period must be seconds or an ISO duration")
        if isinstance(v, float):
            if not v.is_integer():
                raise ValueError("period must be a whole number of seconds")
            return int(v)
        if isinstance(v, str):
            text = v.strip()
            if text.isdigit():
                return int(text)
            duration = Duration.parse(text)
            if duration is None:
                raise ValueError(f"Invalid period '{v}'")
            return duration.seconds
        return v


class ReefConfigFile(BaseModel):
    """Top level of the channel file."""

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    channels: list[ChannelConfig] = Field(default_factory=list)
