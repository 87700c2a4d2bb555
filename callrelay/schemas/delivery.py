from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from callrelay.constants.automation import DeliveryChannelId


class DeliveryResult(BaseModel):
    """Outcome of the fallback chain for one message.

    ok is True only when a programmatic channel delivered. handled is True
    whenever the attempt must not be retried (delivered, or manual fallback).
    """

    ok: bool
    channel_used: Optional[DeliveryChannelId] = None
    handled: bool = False
    manual_text: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
