"""CallRecord model: one row per processed missed call (the dedup ledger)."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, String

from callrelay.db import Base
from callrelay.models.mixins import TimestampMixin


class CallRecord(Base, TimestampMixin):
    """Processed call keyed by a deterministic call_id.

    Rows are immutable once message_sent is true. The ledger keeps only the
    most recent rows; insertion order (id) drives FIFO eviction.
    """

    __tablename__ = "call_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    call_id = Column(String(255), unique=True, nullable=False, index=True)
    phone_number = Column(String(64), nullable=False)
    call_timestamp = Column(BigInteger, nullable=False)
    processed = Column(Boolean, nullable=False, default=False)
    message_sent = Column(Boolean, nullable=False, default=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    channel_used = Column(String(32), nullable=True)
    outcome = Column(String(32), nullable=True)
    synced_at = Column(DateTime(timezone=True), nullable=True)
