"""
Schemas Module
==============

Pydantic models for the channel file and for EventBus payloads.
"""

from reef.schemas.channels import ChannelConfig, DriverConfig, ReefConfigFile
from reef.schemas.events import (
    ChannelFailurePayload,
    ChannelRejectedPayload,
    ChannelSkippedPayload,
    ChannelValuePayload,
    SchedulerLifecyclePayload,
)

__all__ = [
    "ChannelConfig",
    "ChannelFailurePayload",
    "ChannelRejectedPayload",
    "ChannelSkippedPayload",
    "ChannelValuePayload",
    "DriverConfig",
    "ReefConfigFile",
    "SchedulerLifecyclePayload",
]
