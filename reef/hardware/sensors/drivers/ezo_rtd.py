"""
Atlas Scientific EZO-RTD Temperature Circuit
============================================
I2C driver for the EZO-RTD platinum RTD temperature probe.

Protocol (I2C mode):
- Commands are plain ASCII written to the circuit's address: ``R`` (read),
  ``i`` (device information), ``Status``.
- The circuit needs time to process: 600 ms for ``R`` and ``i``, 300 ms for
  ``Status``. The response is then read as a 14-byte block.
- Byte 0 is the response code: 1 success, 2 syntax error, 254 still
  processing; anything else is treated as unparseable. The payload runs
  from byte 1 up to the first NUL and must decode as UTF-8.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Protocol

from reef.domain.exceptions import DeviceError
from reef.hardware.sensors.drivers.base import BaseInputDriver
from reef.risp.values import Number

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = 0x66
RESPONSE_LENGTH = 14

RESPONSE_SUCCESS = 1
RESPONSE_SYNTAX_ERROR = 2
RESPONSE_NOT_READY = 254

READ_DELAY_S = 0.6
INFO_DELAY_S = 0.6
STATUS_DELAY_S = 0.3


class EzoError(DeviceError):
    """Base error for EZO circuit communication."""


class EzoBusError(EzoError):
    """The I2C transfer itself failed."""


class EzoNotReadyError(EzoError):
    """The circuit is still processing the previous command."""


class EzoSyntaxError(EzoError):
    """The circuit rejected the command."""


class EzoParseError(EzoError):
    """The response code or payload could not be understood."""


class I2CTransport(Protocol):
    def write(self, address: int, data: bytes) -> None: ...

    def read(self, address: int, length: int) -> bytes: ...


class SMBusTransport:
    """
    Raw I2C transfers over ``smbus2``.

    EZO circuits do not use register addressing, so plain ``i2c_msg`` reads
    and writes are used instead of the SMBus block calls.
    """

    def __init__(self, bus: int = 1):
        try:
            from smbus2 import SMBus, i2c_msg
        except ImportError as exc:
            raise DeviceError("smbus2 is not installed; I2C devices are unavailable") from exc

        self._i2c_msg = i2c_msg
        try:
            self._bus = SMBus(bus)
        except (FileNotFoundError, PermissionError, OSError) as exc:
            raise DeviceError(f"Cannot open I2C bus {bus}: {exc}", detail={"bus": bus}) from exc
        self.bus_number = bus
        self._lock = threading.Lock()
        logger.info("Opened I2C bus %s", bus)

    def write(self, address: int, data: bytes) -> None:
        with self._lock:
            self._bus.i2c_rdwr(self._i2c_msg.write(address, data))

    def read(self, address: int, length: int) -> bytes:
        message = self._i2c_msg.read(address, length)
        with self._lock:
            self._bus.i2c_rdwr(message)
        return bytes(message)

    def close(self) -> None:
        with self._lock:
            self._bus.close()
        logger.info("Closed I2C bus %s", self.bus_number)


class EzoRtdDriver(BaseInputDriver):
    """
    EZO-RTD temperature probe.

    Args:
        transport: Object providing ``write(address, data)`` and
            ``read(address, length)``
        address: 7-bit I2C address of the circuit
        owns_transport: Close the transport on cleanup (false when the bus is shared)
        sleep: Delay function, replaceable in tests
    """

    def __init__(
        self,
        transport: I2CTransport,
        address: int = DEFAULT_ADDRESS,
        *,
        name: str = "",
        owns_transport: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(name or f"ezo_rtd@0x{address:02x}")
        self.transport = transport
        self.address = address
        self._sleep = sleep
        self._owns_transport = owns_transport
        # One command/response exchange at a time per circuit
        self._lock = threading.Lock()

    def send_command(self, command: str) -> None:
        try:
            self.transport.write(self.address, command.encode("ascii"))
        except OSError as exc:
            raise EzoBusError(
                f"I2C write to 0x{self.address:02x} failed: {exc}",
                detail={"address": self.address, "command": command},
            ) from exc

    def read_response(self, length: int = RESPONSE_LENGTH) -> bytes:
        try:
            buffer = bytes(self.transport.read(self.address, length))
        except OSError as exc:
            raise EzoBusError(
                f"I2C read from 0x{self.address:02x} failed: {exc}",
                detail={"address": self.address},
            ) from exc
        self._validate_response_code(buffer)
        return buffer

    def _validate_response_code(self, buffer: bytes) -> None:
        if not buffer:
            raise EzoParseError("Empty response", detail={"address": self.address})
        code = buffer[0]
        if code == RESPONSE_SUCCESS:
            return
        if code == RESPONSE_NOT_READY:
            raise EzoNotReadyError("EZO-RTD still processing", detail={"address": self.address, "code": code})
        if code == RESPONSE_SYNTAX_ERROR:
            raise EzoSyntaxError("EZO-RTD reported a syntax error", detail={"address": self.address, "code": code})
        raise EzoParseError(f"Unexpected response code {code}", detail={"address": self.address, "code": code})

    @staticmethod
    def extract_string(buffer: bytes) -> str:
        """Payload between the response code and the first NUL."""
        end = buffer.find(b"\x00")
        if end == -1:
            end = len(buffer)
        try:
            return buffer[1:end].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EzoParseError(f"Response is not valid UTF-8: {buffer!r}") from exc

    def query(self, command: str, delay: float) -> str:
        """Send a command, wait for processing and return the response payload."""
        with self._lock:
            self.send_command(command)
            self._sleep(delay)
            return self.extract_string(self.read_response())

    def information(self) -> str:
        return self.query("i", INFO_DELAY_S)

    def status(self) -> str:
        return self.query("Status", STATUS_DELAY_S)

    def read_temperature(self) -> float:
        payload = self.query("R", READ_DELAY_S)
        try:
            return float(payload)
        except ValueError:
            raise EzoParseError(f"Not a temperature: {payload!r}", detail={"payload": payload}) from None

    def read(self) -> Number:
        temperature = self.read_temperature()
        logger.debug("%s read %.3f", self.name, temperature)
        return Number(temperature)

    def cleanup(self) -> None:
        if not self._owns_transport:
            return
        close = getattr(self.transport, "close", None)
        if callable(close):
            close()
