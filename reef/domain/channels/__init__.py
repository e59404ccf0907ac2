from reef.domain.channels.channel_entity import Channel
from reef.domain.channels.registry import ChannelRegistry, literal_setting

__all__ = ["Channel", "ChannelRegistry", "literal_setting"]
