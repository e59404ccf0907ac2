"""
This file contains the abstract base class for all relay types.
The RelayBase class maps a committed channel value onto on/off switching.
"""

import logging

from reef.domain.exceptions import DeviceError
from reef.risp.values import Boolean, Number, Value

logger = logging.getLogger(__name__)


class RelayBase:
    """
    Abstract base class for all relay types.

    Attributes:
        device (str): The name of the device controlled by the relay.

    Methods:
        write(value): Switches the relay according to a channel value.
        turn_on(): Turns the relay on. (Implemented in subclasses)
        turn_off(): Turns the relay off. (Implemented in subclasses)
    """

    def __init__(self, device: str):
        self.device = device
        self.is_on: bool | None = None

    @staticmethod
    def wants_on(value: Value) -> bool:
        """``true`` or a non-zero number means on."""
        if isinstance(value, Boolean):
            return value.value
        if isinstance(value, Number):
            return value.value != 0
        raise DeviceError(
            f"Relay cannot be driven by a {value.kind} value",
            detail={"kind": value.kind},
        )

    def write(self, value: Value) -> None:
        if self.wants_on(value):
            self.turn_on()
        else:
            self.turn_off()

    def turn_on(self):
        """Turns the relay on. It is implemented in subclasses."""
        raise NotImplementedError("Subclasses must implement turn_on method")

    def turn_off(self):
        """Turns the relay off. It is implemented in subclasses."""
        raise NotImplementedError("Subclasses must implement turn_off method")

    def cleanup(self) -> None:
        pass

    def get_device(self) -> str:
        return self.device
