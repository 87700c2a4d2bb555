"""Fixtures wiring the services against the in-memory database."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from callrelay.channels.plugins.manual import PendingManualSends
from callrelay.core.app_state import AppState
from callrelay.core.identity import IdentityResolver
from callrelay.services.chat_token_service import ChatTokenService
from callrelay.services.config_sync_service import ConfigSyncService
from callrelay.services.dedup_ledger_service import DedupLedgerService

CHAT_BASE_URL = "https://chat.example.test"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="function")
def clock():
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="function")
def ledger(session_factory):
    return DedupLedgerService(session_factory, retention=100)


@pytest.fixture(scope="function")
def token_service(offline_backend, session_factory, clock):
    return ChatTokenService(
        offline_backend,
        session_factory,
        chat_base_url=CHAT_BASE_URL,
        ttl_hours=24,
        clock=clock,
    )


@pytest.fixture(scope="function")
def config_service(offline_backend, session_factory, clock):
    return ConfigSyncService(
        offline_backend,
        session_factory,
        grace_seconds=30,
        clock=clock,
    )


@pytest.fixture(scope="function")
def device_identity_resolver(anonymous_credentials, session_factory):
    return IdentityResolver(anonymous_credentials, session_factory)


@pytest.fixture(scope="function")
def sms_capability():
    """Device SMS capability double that has permission and always sends."""
    sms = MagicMock()
    sms.has_send_permission.return_value = True
    sms.send_text.return_value = None
    return sms


@pytest.fixture(scope="function")
def manual_notifier():
    return PendingManualSends()


@pytest.fixture(scope="function")
def app_state(
    offline_backend,
    anonymous_credentials,
    session_factory,
    contact_lookup,
    sms_capability,
    manual_notifier,
):
    """Fully wired AppState: offline backend, direct SMS and manual channels."""
    return AppState().configure(
        session_factory=session_factory,
        credentials=anonymous_credentials,
        backend=offline_backend,
        contact_lookup=contact_lookup,
        sms=sms_capability,
        notifier=manual_notifier,
        queue_tasks=False,
    )
