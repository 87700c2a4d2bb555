"""Ordered fallback delivery across the registered channels."""

from __future__ import annotations

import threading
from typing import Callable, List, Optional

from callrelay.channels.base import ChannelAttempt, DeliveryChannel
from callrelay.channels.envelope import OutboundSms
from callrelay.core.errors import DeliveryFailure, PermissionDenied
from callrelay.core.registry import ChannelRegistry
from callrelay.infra.logging_config import get_logger
from callrelay.schemas.delivery import DeliveryResult

logger = get_logger("delivery")

PermissionDeniedHook = Callable[[PermissionDenied], None]


class DeliveryDispatcher:
    """
    Tries each programmatic channel in registry order until one delivers.

    When all of them fail, the non-programmatic (manual) channel surfaces the
    exact text and the result is handled but not ok. A missing send permission
    is reported through on_permission_denied once per process run.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        on_permission_denied: Optional[PermissionDeniedHook] = None,
    ) -> None:
        self._registry = registry
        self._on_permission_denied = on_permission_denied
        self._permission_surfaced = False
        self._lock = threading.Lock()

    @property
    def permission_denial_surfaced(self) -> bool:
        return self._permission_surfaced

    def send(
        self, phone_number: str, text: str, call_id: Optional[str] = None
    ) -> DeliveryResult:
        msg = OutboundSms(phone_number=phone_number, text=text, call_id=call_id)
        channels = self._registry.list_channels()
        errors: List[str] = []

        for channel in (c for c in channels if c.meta.programmatic):
            attempt = self._attempt(channel, msg)
            if attempt.ok:
                logger.info("Delivered call %s via %s", call_id, attempt.channel)
                return DeliveryResult(
                    ok=True, channel_used=attempt.channel, handled=True, errors=errors
                )
            errors.append(f"{attempt.channel}: {attempt.error}")
            if attempt.permission_denied:
                self._surface_permission_denied(attempt)

        for channel in (c for c in channels if not c.meta.programmatic):
            attempt = self._attempt(channel, msg)
            if attempt.ok or attempt.manual_text is not None:
                logger.info(
                    "Programmatic delivery exhausted for call %s; manual send surfaced",
                    call_id,
                )
                return DeliveryResult(
                    ok=attempt.ok,
                    channel_used=attempt.channel,
                    handled=True,
                    manual_text=attempt.manual_text,
                    errors=errors,
                )
            errors.append(f"{attempt.channel}: {attempt.error}")

        logger.error("All delivery channels failed for call %s: %s", call_id, errors)
        return DeliveryResult(ok=False, handled=False, errors=errors)

    def _attempt(self, channel: DeliveryChannel, msg: OutboundSms) -> ChannelAttempt:
        try:
            return channel.send(msg)
        except DeliveryFailure as e:
            logger.info("Channel %s declined: %s", channel.id, e.detail)
            return ChannelAttempt.failure(channel.id, e.detail)
        except Exception as e:
            logger.warning("Channel %s raised while sending: %s", channel.id, e)
            return ChannelAttempt.failure(channel.id, str(e) or type(e).__name__)

    def _surface_permission_denied(self, attempt: ChannelAttempt) -> None:
        with self._lock:
            if self._permission_surfaced:
                return
            self._permission_surfaced = True
        denial = PermissionDenied(f"{attempt.channel}.send")
        logger.error("%s; falling back to other channels", denial)
        if self._on_permission_denied is not None:
            self._on_permission_denied(denial)
