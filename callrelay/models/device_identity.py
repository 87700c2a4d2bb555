"""DeviceIdentity model: the stable interim identity used before login."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String

from callrelay.db import Base
from callrelay.models.mixins import TimestampMixin


class DeviceIdentity(Base, TimestampMixin):
    __tablename__ = "device_identity"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(String(64), unique=True, nullable=False)
    linked_user_id = Column(String(255), nullable=True)
    linked_at = Column(DateTime(timezone=True), nullable=True)
