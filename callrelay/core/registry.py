from __future__ import annotations

from typing import Dict, List

from callrelay.channels.base import DeliveryChannel


class ChannelRegistry:
    """Delivery channels in fallback order (registration order)."""

    def __init__(self) -> None:
        self._channels: Dict[str, DeliveryChannel] = {}

    def register_channel(self, channel: DeliveryChannel) -> None:
        if channel.id in self._channels:
            raise ValueError(f"Delivery channel already registered: {channel.id}")
        self._channels[channel.id] = channel

    def list_channels(self) -> List[DeliveryChannel]:
        return list(self._channels.values())
