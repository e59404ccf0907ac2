"""
Base class for all input drivers.
Provides the interface the tick scheduler reads physical inputs through.
"""

import logging

from reef.risp.values import Value

logger = logging.getLogger(__name__)


class BaseInputDriver:
    """
    Abstract base class for input drivers.
    All drivers should inherit from this and implement the read() method.
    """

    def __init__(self, name: str = ""):
        self.name = name or type(self).__name__

    def read(self) -> Value:
        """
        Take one reading. Should be implemented by subclasses.

        Raises:
            DeviceError: if the device cannot be read.
        """
        raise NotImplementedError("read() must be implemented by subclasses.")

    def cleanup(self) -> None:
        """
        Optional cleanup for hardware resources.
        """
        pass
