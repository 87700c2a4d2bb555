"""Schemas for the automation settings, their remote wire form and the status read model."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AutomationConfigSnapshot(BaseModel):
    """Immutable view of the settings, taken once per processed call."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    is_enabled: bool
    message: str
    filter_known_contacts: bool
    sent_count: int = 0
    last_sent_time: Optional[datetime] = None


class AutomationConfigPatch(BaseModel):
    """User edit of the sync-owned fields. Only non-None fields apply."""

    is_enabled: Optional[bool] = None
    message: Optional[str] = None
    filter_known_contacts: Optional[bool] = None


class RemoteAutomationConfig(BaseModel):
    """Config as returned by GET /automation/config (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    is_enabled: Optional[bool] = Field(default=None, alias="isEnabled")
    message: Optional[str] = None
    filter_known_contacts: Optional[bool] = Field(
        default=None, alias="filterKnownContacts"
    )
    sent_count: Optional[int] = Field(default=None, alias="sentCount")
    last_sent_time: Optional[datetime] = Field(default=None, alias="lastSentTime")


class AutomationStatus(BaseModel):
    """Read model for display."""

    is_enabled: bool
    sent_count: int
    last_sent_time: Optional[datetime] = None
    processed_calls_count: int
    filter_known_contacts: bool
    message: str
    current_link: Optional[str] = None
    sms_permission_denied: bool = False


class TemplateUpdate(BaseModel):
    message: str = Field(min_length=1, max_length=1600)


class ToggleResponse(BaseModel):
    enabled: bool


class LinkResponse(BaseModel):
    conversation_url: Optional[str] = None


class ToggleRequest(BaseModel):
    """Explicit target state; omitted means flip the current value."""

    enabled: Optional[bool] = None


class HistoryCleared(BaseModel):
    deleted: int
