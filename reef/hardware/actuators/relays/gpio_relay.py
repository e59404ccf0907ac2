# Description: GPIO relay implementation for Raspberry Pi.
#
import logging
from typing import Any

from reef.domain.exceptions import DeviceError

from .relay_base import RelayBase

logger = logging.getLogger(__name__)


class GPIORelay(RelayBase):
    """
    Controls a relay using Raspberry Pi GPIO.

    Attributes:
        device (str): The name of the controlled device.
        pin (int): BCM pin driving the relay.
        active_low (bool): Relay boards that energize on LOW.

    Methods:
        turn_on(): Energizes the relay.
        turn_off(): Releases the relay.
        cleanup(): Releases the GPIO pin resources.
    """

    def __init__(self, device: str, pin: int, active_low: bool = False, gpio: Any = None):
        """
        Initializes the GPIO relay with the specified GPIO pin.

        Args:
            device (str): The name of the device.
            pin (int): The GPIO pin number to control the relay.
            active_low (bool): Drive LOW for on.
            gpio: GPIO module to use; defaults to ``RPi.GPIO``.

        Raises:
            DeviceError: if GPIO is not available on this machine.
        """
        super().__init__(device)
        self.pin = pin
        self.active_low = active_low
        self.GPIO = gpio if gpio is not None else self._setup_gpio()
        try:
            self.GPIO.setmode(self.GPIO.BCM)
            self.GPIO.setup(self.pin, self.GPIO.OUT, initial=self._level(False))
        except RuntimeError as exc:
            raise DeviceError(f"Cannot set up GPIO pin {pin}: {exc}", detail={"pin": pin}) from exc
        logger.info("GPIO pin %s set as OUTPUT for %s", self.pin, self.device)

    def _setup_gpio(self):
        """Imports GPIO only when running on a Raspberry Pi."""
        try:
            import RPi.GPIO as GPIO  # type: ignore

            return GPIO
        except (ImportError, RuntimeError) as exc:
            raise DeviceError(
                f"GPIO not available for relay {self.device}; install the 'hardware' extra on a Raspberry Pi",
                detail={"pin": self.pin},
            ) from exc

    def _level(self, on: bool):
        energize = on != self.active_low
        return self.GPIO.HIGH if energize else self.GPIO.LOW

    def _output(self, on: bool) -> None:
        try:
            self.GPIO.output(self.pin, self._level(on))
        except RuntimeError as exc:
            raise DeviceError(
                f"Error switching GPIO relay {self.device}: {exc}",
                detail={"pin": self.pin},
            ) from exc
        if self.is_on != on:
            logger.info("Turned %s GPIO relay for %s on pin %s", "on" if on else "off", self.device, self.pin)
        self.is_on = on

    def turn_on(self):
        self._output(True)

    def turn_off(self):
        self._output(False)

    def cleanup(self):
        """Releases the GPIO pin resources."""
        try:
            self.GPIO.cleanup(self.pin)
            logger.info("Cleaned up GPIO pin %s for %s", self.pin, self.device)
        except RuntimeError as e:
            logger.error("Error cleaning up GPIO pin %s: %s", self.pin, e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.cleanup()
