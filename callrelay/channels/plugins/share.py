"""Share channel: hands the prepared message to another app on the device."""

from __future__ import annotations

from typing import Protocol

from callrelay.channels.base import ChannelAttempt, ChannelMeta
from callrelay.channels.envelope import OutboundSms
from callrelay.constants.automation import DeliveryChannelId
from callrelay.core.errors import DeliveryFailure


class ShareCapability(Protocol):
    def share_text(self, phone_number: str, text: str) -> bool: ...


class ShareChannel:
    id = DeliveryChannelId.SHARE
    meta = ChannelMeta(label="Share intent")

    def __init__(self, capability: ShareCapability) -> None:
        self._capability = capability

    def send(self, msg: OutboundSms) -> ChannelAttempt:
        if not self._capability.share_text(msg.phone_number, msg.text):
            raise DeliveryFailure(self.id, "Share intent was not accepted")
        return ChannelAttempt.success(self.id)
