"""
Low-level input drivers.

Available drivers:
- EzoRtdDriver: Atlas Scientific EZO-RTD temperature circuit (I2C)
"""

from .base import BaseInputDriver
from .ezo_rtd import EzoRtdDriver, SMBusTransport

__all__ = ["BaseInputDriver", "EzoRtdDriver", "SMBusTransport"]
