"""Manual channel: the last resort, surfaces the exact text for the user to send."""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Protocol

from callrelay.channels.base import ChannelAttempt, ChannelMeta
from callrelay.channels.envelope import OutboundSms
from callrelay.constants.automation import DeliveryChannelId
from callrelay.infra.logging_config import get_logger

logger = get_logger("manual_send")


class ManualSendNotifier(Protocol):
    def notify(self, msg: OutboundSms) -> None: ...


class PendingManualSends:
    """Default notifier: logs the instruction and keeps the latest ones for display."""

    def __init__(self, maxlen: int = 20) -> None:
        self._pending: Deque[OutboundSms] = deque(maxlen=maxlen)

    def notify(self, msg: OutboundSms) -> None:
        logger.warning(
            "Manual send required to %s (call %s): %s",
            msg.phone_number,
            msg.call_id,
            msg.text,
        )
        self._pending.append(msg)

    def list_pending(self) -> List[OutboundSms]:
        return list(self._pending)


class ManualChannel:
    id = DeliveryChannelId.MANUAL
    meta = ChannelMeta(label="Manual send", programmatic=False)

    def __init__(self, notifier: ManualSendNotifier) -> None:
        self._notifier = notifier

    def send(self, msg: OutboundSms) -> ChannelAttempt:
        self._notifier.notify(msg)
        return ChannelAttempt(channel=self.id, ok=False, manual_text=msg.text)
