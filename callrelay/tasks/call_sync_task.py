"""Celery task that uploads processed call records to the backend."""

from __future__ import annotations

from typing import Any, Dict

from callrelay.core.errors import TransientNetworkFailure
from callrelay.infra.celery_app import celery_app
from callrelay.infra.logging_config import get_logger
from callrelay.schemas.call import CallRecordRead
from callrelay.tasks._services import get_worker_state

logger = get_logger("call_sync")


def to_remote_record(record: CallRecordRead) -> Dict[str, Any]:
    return {
        "callId": record.call_id,
        "phoneNumber": record.phone_number,
        "timestamp": record.call_timestamp,
        "messageSent": record.message_sent,
        "sentAt": record.sent_at.isoformat() if record.sent_at else None,
        "channelUsed": record.channel_used,
        "outcome": record.outcome,
    }


@celery_app.task(name="callrelay.tasks.call_sync_task.sync_call_records_task")
def sync_call_records_task(limit: int = 100) -> int:
    """Push unsynced call records. Returns how many were accepted."""
    app_state = get_worker_state()
    records = app_state.ledger.unsynced_records(limit=limit)
    if not records:
        return 0

    result = app_state.backend.sync_calls([to_remote_record(r) for r in records])
    try:
        result.raise_for_error()
    except TransientNetworkFailure as e:
        logger.warning("Call record upload failed, will retry: %s", e)
        return 0

    app_state.ledger.mark_synced([r.call_id for r in records])
    logger.info("Uploaded %d call records", len(records))
    return len(records)
