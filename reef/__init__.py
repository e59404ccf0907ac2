"""Reef aquarium controller: channels programmed in Risp, driven by a tick scheduler."""

__version__ = "0.1.0"
