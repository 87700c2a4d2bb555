from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from callrelay.constants.automation import DeliveryChannelId

from .envelope import OutboundSms


@dataclass(frozen=True)
class ChannelMeta:
    label: str
    programmatic: bool = True


@dataclass(frozen=True)
class ChannelAttempt:
    """Uniform result of one channel trying to deliver one message."""

    channel: DeliveryChannelId
    ok: bool
    error: Optional[str] = None
    permission_denied: bool = False
    manual_text: Optional[str] = None

    @classmethod
    def success(cls, channel: DeliveryChannelId) -> "ChannelAttempt":
        return cls(channel=channel, ok=True)

    @classmethod
    def failure(
        cls, channel: DeliveryChannelId, error: str, permission_denied: bool = False
    ) -> "ChannelAttempt":
        return cls(
            channel=channel, ok=False, error=error, permission_denied=permission_denied
        )


class DeliveryChannel(Protocol):
    id: DeliveryChannelId
    meta: ChannelMeta

    def send(self, msg: OutboundSms) -> ChannelAttempt: ...
