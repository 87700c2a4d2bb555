"""ChatToken model: per-identity cache of issued chat-access tokens."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, String

from callrelay.db import Base
from callrelay.models.mixins import TimestampMixin


class ChatToken(Base, TimestampMixin):
    """A short opaque credential granting access to one conversation.

    At most one row per provider_identity has is_current set. Superseded rows
    stay until they expire so links already delivered keep resolving.
    """

    __tablename__ = "chat_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    provider_identity = Column(String(255), nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    conversation_url = Column(String(1024), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_current = Column(Boolean, nullable=False, default=False)
    origin = Column(String(16), nullable=False, default="remote")
    remote_registered = Column(Boolean, nullable=False, default=True)
