from .gpio_relay import GPIORelay
from .relay_base import RelayBase

__all__ = ["GPIORelay", "RelayBase"]
