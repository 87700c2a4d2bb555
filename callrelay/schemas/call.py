"""
Call event contracts.

The call monitor emits CallEvent payloads (camelCase or snake_case keys are
accepted); the orchestrator reports a CallOutcome per event.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from callrelay.constants.automation import (
    CallOutcomeStatus,
    CallSource,
    DeliveryChannelId,
)


def build_call_id(timestamp: int, phone_number: str) -> str:
    """Deterministic dedup key for a call."""
    return f"call_{timestamp}_{phone_number}"


class CallEvent(BaseModel):
    """One inbound missed-call notification from the call monitor."""

    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(
        validation_alias=AliasChoices("phone_number", "phoneNumber"), min_length=1
    )
    timestamp: int = Field(ge=0)  # epoch ms
    contact_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("contact_name", "contactName")
    )
    source: CallSource = CallSource.LIVE
    duration: int = 0

    @property
    def call_id(self) -> str:
        return build_call_id(self.timestamp, self.phone_number)


class CallOutcome(BaseModel):
    """Result of running one CallEvent through the pipeline."""

    call_id: str
    status: CallOutcomeStatus
    reason: Optional[str] = None
    channel_used: Optional[DeliveryChannelId] = None


class CallRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    call_id: str
    phone_number: str
    call_timestamp: int
    processed: bool
    message_sent: bool
    sent_at: Optional[datetime] = None
    channel_used: Optional[str] = None
    outcome: Optional[str] = None


class CallEventAccepted(BaseModel):
    call_id: str
    queued: bool = True
