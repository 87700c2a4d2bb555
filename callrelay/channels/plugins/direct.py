"""Direct SMS channel backed by the device's SMS capability."""

from __future__ import annotations

from typing import Protocol

from callrelay.channels.base import ChannelAttempt, ChannelMeta
from callrelay.channels.envelope import OutboundSms
from callrelay.constants.automation import DeliveryChannelId


class SmsCapability(Protocol):
    def has_send_permission(self) -> bool: ...

    def send_text(self, phone_number: str, text: str) -> None:
        """Send or raise. Long texts are split by the capability itself."""
        ...


class DirectSmsChannel:
    id = DeliveryChannelId.DIRECT
    meta = ChannelMeta(label="Direct SMS")

    def __init__(self, capability: SmsCapability) -> None:
        self._capability = capability

    def send(self, msg: OutboundSms) -> ChannelAttempt:
        if not self._capability.has_send_permission():
            return ChannelAttempt.failure(
                self.id, "SMS send permission not granted", permission_denied=True
            )
        self._capability.send_text(msg.phone_number, msg.text)
        return ChannelAttempt.success(self.id)
