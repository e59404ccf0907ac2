"""Centralized exception hierarchy for the reef controller.

All domain, hardware and interpreter exceptions inherit from
:class:`ReefError` so that the tick loop can contain a single base class at
the channel-run boundary, yet still match on specific subclasses where the
failure policy differs (log level, hold-last behaviour, alerting).

Hierarchy
---------
::

    ReefError (base)
    ├── ConfigurationError       (invalid channel declaration / env config)
    ├── DeviceError              (hardware communication failure)
    │   └── DeviceTimeoutError   (device call exceeded its timeout)
    └── RispError                (see reef.risp.errors)
        ├── RispSyntaxError
        ├── UndefinedSymbolError
        │   └── NoMatchingClauseError
        ├── TypeMismatchError
        ├── ArityError
        └── DivisionByZeroError
"""

from __future__ import annotations


class ReefError(Exception):
    """Base exception for all reef controller errors.

    Parameters
    ----------
    message:
        Human-readable description.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging and failure events.
    """

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


class ConfigurationError(ReefError):
    """Missing or invalid configuration (env settings or channel file)."""


class DeviceError(ReefError):
    """Hardware communication or device-protocol failure."""


class DeviceTimeoutError(DeviceError):
    """A device read or write did not complete within its timeout."""
