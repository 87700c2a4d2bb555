"""Durable at-most-once ledger of processed calls."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from callrelay.config import get_settings
from callrelay.db import SessionLocal
from callrelay.infra.logging_config import get_logger
from callrelay.models.call_record import CallRecord
from callrelay.schemas.call import CallEvent, CallRecordRead

logger = get_logger("dedup_ledger")


class DedupLedgerService:
    """
    Tracks which calls already triggered processing.

    claim() is the check-then-mark critical section: it holds a process lock
    and relies on the unique call_id constraint across processes, so two
    near-simultaneous deliveries of the same call cannot both win.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        retention: Optional[int] = None,
    ) -> None:
        self._session_factory = session_factory
        self._retention = retention or get_settings().ledger_retention
        self._lock = threading.Lock()

    def should_process(self, call_id: str) -> bool:
        """True if the call has never been seen."""
        with self._session_factory() as db:
            return self._get(db, call_id) is None

    def claim(self, event: CallEvent) -> bool:
        """Atomically record first sighting. Returns False if already seen."""
        with self._lock, self._session_factory() as db:
            if self._get(db, event.call_id) is not None:
                return False
            db.add(
                CallRecord(
                    call_id=event.call_id,
                    phone_number=event.phone_number,
                    call_timestamp=event.timestamp,
                    processed=False,
                    message_sent=False,
                )
            )
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info("Call %s claimed concurrently elsewhere", event.call_id)
                return False
            return True

    def mark_processed(
        self,
        call_id: str,
        *,
        message_sent: bool = False,
        channel_used: Optional[str] = None,
        outcome: Optional[str] = None,
        phone_number: Optional[str] = None,
        call_timestamp: Optional[int] = None,
    ) -> CallRecordRead:
        """Mark the call processed. A record with message_sent is never rewritten."""
        with self._lock, self._session_factory() as db:
            record = self._get(db, call_id)
            if record is None:
                record = CallRecord(
                    call_id=call_id,
                    phone_number=phone_number or "",
                    call_timestamp=call_timestamp or 0,
                )
                db.add(record)
            if record.message_sent:
                return CallRecordRead.model_validate(record)
            record.processed = True
            record.outcome = outcome
            record.channel_used = channel_used
            if message_sent:
                record.message_sent = True
                record.sent_at = datetime.now(timezone.utc)
            db.commit()
            db.refresh(record)
            snapshot = CallRecordRead.model_validate(record)
            self._evict(db)
            return snapshot

    def has_sent(self, call_id: str) -> bool:
        with self._session_factory() as db:
            record = self._get(db, call_id)
            return bool(record and record.message_sent)

    def processed_count(self) -> int:
        with self._session_factory() as db:
            return db.query(CallRecord).filter(CallRecord.processed.is_(True)).count()

    def list_records(self, limit: int = 100) -> List[CallRecordRead]:
        """Most recent records first."""
        with self._session_factory() as db:
            records = (
                db.query(CallRecord).order_by(CallRecord.id.desc()).limit(limit).all()
            )
            return [CallRecordRead.model_validate(r) for r in records]

    def clear_history(self) -> int:
        """User-initiated reset: previously seen calls become eligible again."""
        with self._lock, self._session_factory() as db:
            deleted = db.query(CallRecord).delete()
            db.commit()
        logger.info("Cleared %d processed call records", deleted)
        return deleted

    def unsynced_records(self, limit: int = 100) -> List[CallRecordRead]:
        with self._session_factory() as db:
            records = (
                db.query(CallRecord)
                .filter(CallRecord.processed.is_(True), CallRecord.synced_at.is_(None))
                .order_by(CallRecord.id.asc())
                .limit(limit)
                .all()
            )
            return [CallRecordRead.model_validate(r) for r in records]

    def mark_synced(self, call_ids: List[str]) -> None:
        if not call_ids:
            return
        now = datetime.now(timezone.utc)
        with self._lock, self._session_factory() as db:
            db.query(CallRecord).filter(CallRecord.call_id.in_(call_ids)).update(
                {CallRecord.synced_at: now}, synchronize_session=False
            )
            db.commit()

    def _get(self, db: Session, call_id: str) -> Optional[CallRecord]:
        return db.query(CallRecord).filter(CallRecord.call_id == call_id).first()

    def _evict(self, db: Session) -> None:
        """Drop the oldest rows beyond the retention window (FIFO)."""
        keep_ids = [
            row_id
            for (row_id,) in db.query(CallRecord.id)
            .order_by(CallRecord.id.desc())
            .limit(self._retention)
            .all()
        ]
        if not keep_ids:
            return
        evicted = (
            db.query(CallRecord)
            .filter(CallRecord.id < min(keep_ids))
            .delete(synchronize_session=False)
        )
        if evicted:
            db.commit()
            logger.debug("Evicted %d call records beyond retention", evicted)
