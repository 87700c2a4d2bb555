"""
Offline-first synchronization of the automation settings.

The remote config is the source of truth; the singleton AutomationConfig row
is a cache that keeps the pipeline working while the backend is unreachable.
User edits are written locally first and pushed by a queued task. A pull
overwrites the sync-owned fields unless a local edit is still pending or is
younger than the grace window.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from callrelay.adapters.backend_client import BackendClient
from callrelay.config import get_settings
from callrelay.constants.automation import DEFAULT_MESSAGE_TEMPLATE
from callrelay.db import SessionLocal
from callrelay.infra.logging_config import get_logger
from callrelay.models.automation_config import SINGLETON_ID, AutomationConfig
from callrelay.schemas.automation import (
    AutomationConfigPatch,
    AutomationConfigSnapshot,
    RemoteAutomationConfig,
)

logger = get_logger("config_sync")

SYNC_OWNED_FIELDS = ("is_enabled", "message", "filter_known_contacts")

PushQueue = Callable[[], Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ConfigSyncService:
    def __init__(
        self,
        backend: BackendClient,
        session_factory: Callable[[], Session] = SessionLocal,
        *,
        grace_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
        enqueue_push: Optional[PushQueue] = None,
    ) -> None:
        settings = get_settings()
        self._backend = backend
        self._session_factory = session_factory
        self._grace = timedelta(
            seconds=(
                grace_seconds
                if grace_seconds is not None
                else settings.config_local_grace_seconds
            )
        )
        self._clock = clock
        self._enqueue_push = enqueue_push
        self._lock = threading.RLock()

    # Reads

    def snapshot(self) -> AutomationConfigSnapshot:
        """Immutable copy of the cached settings. No network."""
        with self._session_factory() as db:
            return AutomationConfigSnapshot.model_validate(self._load(db))

    def is_push_pending(self) -> bool:
        with self._session_factory() as db:
            return bool(self._load(db).push_pending)

    # Remote sync

    def pull(self) -> AutomationConfigSnapshot:
        """
        Fetch the remote config and merge it into the cache.

        On any remote failure the last known good cache is returned unchanged.
        """
        result = self._backend.get_automation_config()
        if not result.ok or result.data is None:
            logger.warning(
                "Config pull failed, keeping cached settings: %s", result.error
            )
            return self.snapshot()
        try:
            remote = RemoteAutomationConfig.model_validate(result.data)
        except ValidationError as e:
            logger.warning("Invalid remote config payload: %s", e)
            return self.snapshot()

        now = self._clock()
        with self._lock, self._session_factory() as db:
            row = self._load(db)
            if self._local_wins(row, now):
                logger.info("Local config edit is newer than remote; keeping local")
            else:
                for field in SYNC_OWNED_FIELDS:
                    value = getattr(remote, field)
                    if value is not None:
                        setattr(row, field, value)
                if remote.sent_count is not None:
                    row.sent_count = remote.sent_count
                if remote.last_sent_time is not None:
                    row.last_sent_time = remote.last_sent_time
            row.remote_synced_at = now
            db.commit()
            return AutomationConfigSnapshot.model_validate(row)

    def push(self, patch: Optional[AutomationConfigPatch] = None) -> bool:
        """
        Send the whole local state to the backend. A patch is first merged
        into the local state as a user edit.

        The payload and the edit stamp are read together, so push_pending is
        cleared only when the state that reached the backend is still the
        latest local edit.
        """
        if patch is not None:
            self._apply_local(patch)
        with self._session_factory() as db:
            row = self._load(db)
            stamp = _aware(row.local_updated_at)
            payload = self._full_payload(row)

        result = self._backend.put_automation_config(payload)
        if not result.ok:
            logger.warning("Config push failed, will retry on reconcile: %s", result.error)
            return False

        with self._lock, self._session_factory() as db:
            row = self._load(db)
            if _aware(row.local_updated_at) == stamp:
                row.push_pending = False
                row.remote_synced_at = self._clock()
                db.commit()
        logger.info("Pushed automation config (%s)", ", ".join(sorted(payload)))
        return True

    def reconcile(self) -> AutomationConfigSnapshot:
        """Periodic sync: retry a pending push, then pull."""
        if self.is_push_pending():
            self.push()
        return self.pull()

    # Local edits

    def update(self, patch: AutomationConfigPatch) -> AutomationConfigSnapshot:
        """Write a user edit locally now and queue a push."""
        snapshot = self._apply_local(patch)
        self._schedule_push()
        return snapshot

    def toggle(self, enabled: Optional[bool] = None) -> AutomationConfigSnapshot:
        if enabled is None:
            enabled = not self.snapshot().is_enabled
        logger.info("Automation %s", "enabled" if enabled else "disabled")
        return self.update(AutomationConfigPatch(is_enabled=enabled))

    def update_template(self, message: str) -> AutomationConfigSnapshot:
        return self.update(AutomationConfigPatch(message=message))

    def reset_template(self) -> AutomationConfigSnapshot:
        return self.update(AutomationConfigPatch(message=DEFAULT_MESSAGE_TEMPLATE))

    def toggle_contact_filtering(
        self, enabled: Optional[bool] = None
    ) -> AutomationConfigSnapshot:
        if enabled is None:
            enabled = not self.snapshot().filter_known_contacts
        return self.update(AutomationConfigPatch(filter_known_contacts=enabled))

    def record_delivery(self, sent_at: Optional[datetime] = None) -> AutomationConfigSnapshot:
        """Count one successful delivery. Remote counters win on the next pull."""
        with self._lock, self._session_factory() as db:
            row = self._load(db)
            row.sent_count = (row.sent_count or 0) + 1
            row.last_sent_time = sent_at or self._clock()
            db.commit()
            return AutomationConfigSnapshot.model_validate(row)

    def reset_stats(self) -> AutomationConfigSnapshot:
        with self._lock, self._session_factory() as db:
            row = self._load(db)
            row.sent_count = 0
            row.last_sent_time = None
            self._stamp_local_edit(row)
            db.commit()
            snapshot = AutomationConfigSnapshot.model_validate(row)
        self._schedule_push()
        return snapshot

    def reset(self) -> AutomationConfigSnapshot:
        """Restore factory defaults locally and remotely."""
        with self._lock, self._session_factory() as db:
            row = self._load(db)
            row.is_enabled = False
            row.message = DEFAULT_MESSAGE_TEMPLATE
            row.filter_known_contacts = True
            row.sent_count = 0
            row.last_sent_time = None
            self._stamp_local_edit(row)
            db.commit()
            snapshot = AutomationConfigSnapshot.model_validate(row)
        logger.info("Automation config reset to defaults")
        self._schedule_push()
        return snapshot

    # Internals

    def _load(self, db: Session) -> AutomationConfig:
        row = db.get(AutomationConfig, SINGLETON_ID)
        if row is None:
            row = AutomationConfig(
                id=SINGLETON_ID,
                is_enabled=False,
                message=DEFAULT_MESSAGE_TEMPLATE,
                filter_known_contacts=True,
                sent_count=0,
                push_pending=False,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
        return row

    def _apply_local(self, patch: AutomationConfigPatch) -> AutomationConfigSnapshot:
        with self._lock, self._session_factory() as db:
            row = self._load(db)
            for field in SYNC_OWNED_FIELDS:
                value = getattr(patch, field)
                if value is not None:
                    setattr(row, field, value)
            self._stamp_local_edit(row)
            db.commit()
            return AutomationConfigSnapshot.model_validate(row)

    def _local_wins(self, row: AutomationConfig, now: datetime) -> bool:
        if row.push_pending:
            return True
        updated = _aware(row.local_updated_at)
        return updated is not None and now - updated < self._grace

    def _stamp_local_edit(self, row: AutomationConfig) -> None:
        row.local_updated_at = self._clock()
        row.push_pending = True

    def _schedule_push(self) -> None:
        """Queue a push; without a queue (workers, tests) push right away."""
        if self._enqueue_push is None:
            self.push()
            return
        try:
            self._enqueue_push()
        except Exception as e:
            # push_pending stays set, so the next reconcile retries.
            logger.warning("Could not queue config push: %s", e)

    @staticmethod
    def _full_payload(row: AutomationConfig) -> Dict[str, Any]:
        last_sent = _aware(row.last_sent_time)
        return {
            "isEnabled": row.is_enabled,
            "message": row.message,
            "filterKnownContacts": row.filter_known_contacts,
            "sentCount": row.sent_count,
            "lastSentTime": last_sent.isoformat() if last_sent else None,
        }
