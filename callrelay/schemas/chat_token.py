from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from callrelay.constants.automation import IdentityKind


class ProviderIdentity(BaseModel):
    """Canonical actor on whose behalf messages are sent."""

    model_config = ConfigDict(frozen=True)

    identity_id: str
    kind: IdentityKind
    device_id: Optional[str] = None

    @property
    def is_device(self) -> bool:
        return self.kind == IdentityKind.DEVICE


class RemoteChatToken(BaseModel):
    """Token payload returned by the /chat/tokens endpoints."""

    token: str = Field(validation_alias=AliasChoices("token", "currentToken"))
    conversation_url: str = Field(
        validation_alias=AliasChoices("conversation_url", "chatUrl")
    )
    issued_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("issued_at", "createdAt")
    )
    expires_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("expires_at", "expiresAt")
    )


class ChatTokenRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_identity: str
    token: str
    conversation_url: str
    issued_at: datetime
    expires_at: datetime
    is_current: bool
    origin: str
