"""Backend relay channel: asks the backend to send the SMS on our behalf."""

from __future__ import annotations

from typing import Optional

from callrelay.adapters.backend_client import BackendClient
from callrelay.channels.base import ChannelAttempt, ChannelMeta
from callrelay.channels.envelope import OutboundSms
from callrelay.constants.automation import DeliveryChannelId


class RelayChannel:
    id = DeliveryChannelId.RELAY
    meta = ChannelMeta(label="Backend SMS relay")

    def __init__(self, backend: BackendClient, business_name: Optional[str] = None) -> None:
        self._backend = backend
        self._business_name = business_name

    def send(self, msg: OutboundSms) -> ChannelAttempt:
        result = self._backend.send_missed_call(
            msg.phone_number,
            msg.text,
            call_id=msg.call_id,
            business_name=self._business_name,
        )
        if not result.ok:
            return ChannelAttempt.failure(self.id, result.error or "relay failed")
        return ChannelAttempt.success(self.id)
