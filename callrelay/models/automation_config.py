"""AutomationConfig model: the local cache of the automation settings."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, Text

from callrelay.constants.automation import DEFAULT_MESSAGE_TEMPLATE
from callrelay.db import Base
from callrelay.models.mixins import TimestampMixin

SINGLETON_ID = 1


class AutomationConfig(Base, TimestampMixin):
    """Single-row table. The remote copy is authoritative; this row is a cache.

    local_updated_at is stamped on explicit user edits and compared against
    incoming pulls; push_pending marks an edit the remote has not accepted yet.
    """

    __tablename__ = "automation_config"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    is_enabled = Column(Boolean, nullable=False, default=False)
    message = Column(Text, nullable=False, default=DEFAULT_MESSAGE_TEMPLATE)
    filter_known_contacts = Column(Boolean, nullable=False, default=True)
    sent_count = Column(Integer, nullable=False, default=0)
    last_sent_time = Column(DateTime(timezone=True), nullable=True)
    local_updated_at = Column(DateTime(timezone=True), nullable=True)
    remote_synced_at = Column(DateTime(timezone=True), nullable=True)
    push_pending = Column(Boolean, nullable=False, default=False)
