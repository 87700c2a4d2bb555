from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.orm import Session

from callrelay.adapters.backend_client import BackendClient
from callrelay.adapters.contacts import (
    ContactLookup,
    InMemoryContactLookup,
    JsonFileContactLookup,
)
from callrelay.channels.plugins.direct import DirectSmsChannel, SmsCapability
from callrelay.channels.plugins.manual import (
    ManualChannel,
    ManualSendNotifier,
    PendingManualSends,
)
from callrelay.channels.plugins.relay import RelayChannel
from callrelay.channels.plugins.share import ShareCapability, ShareChannel
from callrelay.config import get_settings
from callrelay.core.credentials import BearerCredentialProvider, StaticCredentialProvider
from callrelay.core.identity import IdentityResolver
from callrelay.core.orchestrator import CallEventOrchestrator
from callrelay.core.registry import ChannelRegistry
from callrelay.core.runtime import Runtime
from callrelay.db import SessionLocal
from callrelay.infra.logging_config import get_logger
from callrelay.services.chat_token_service import ChatTokenService
from callrelay.services.config_sync_service import ConfigSyncService
from callrelay.services.contact_filter_service import ContactFilterService
from callrelay.services.dedup_ledger_service import DedupLedgerService
from callrelay.services.delivery_dispatcher import DeliveryDispatcher
from callrelay.services.security_validator import (
    PremiumPatternPolicy,
    SecurityValidator,
)

logger = get_logger("app_state")


class AppState:
    """Process-wide wiring of the long-lived services. configure() once at startup."""

    def __init__(self) -> None:
        self.configured = False

    def configure(
        self,
        *,
        session_factory: Callable[[], Session] = SessionLocal,
        credentials: Optional[BearerCredentialProvider] = None,
        backend: Optional[BackendClient] = None,
        contact_lookup: Optional[ContactLookup] = None,
        sms: Optional[SmsCapability] = None,
        share: Optional[ShareCapability] = None,
        notifier: Optional[ManualSendNotifier] = None,
        queue_tasks: bool = True,
    ) -> "AppState":
        settings = get_settings()

        self.credentials = credentials or StaticCredentialProvider.from_settings()
        self.backend = backend or BackendClient(self.credentials)

        if contact_lookup is None:
            contact_lookup = (
                JsonFileContactLookup(settings.contacts_file)
                if settings.contacts_file
                else InMemoryContactLookup()
            )
        self.contact_lookup = contact_lookup
        self.notifier = notifier or PendingManualSends()

        self.registry = ChannelRegistry()
        relay_enabled = settings.relay_channel_enabled
        if relay_enabled is None:
            relay_enabled = bool(self.credentials.get_token())
        if relay_enabled:
            self.registry.register_channel(
                RelayChannel(self.backend, business_name=settings.business_name)
            )
        if sms is not None:
            self.registry.register_channel(DirectSmsChannel(sms))
        if share is not None:
            self.registry.register_channel(ShareChannel(share))
        self.registry.register_channel(ManualChannel(self.notifier))
        if not any(c.meta.programmatic for c in self.registry.list_channels()):
            logger.warning(
                "No programmatic delivery channel configured; every message "
                "will need a manual send. Set BACKEND_AUTH_TOKEN to deliver "
                "through the backend relay."
            )

        self.validator = SecurityValidator(
            PremiumPatternPolicy.from_file(settings.premium_patterns_file)
            if settings.premium_patterns_file
            else None
        )
        self.contact_filter = ContactFilterService(
            contact_lookup, settings.default_country_code
        )
        self.ledger = DedupLedgerService(session_factory, settings.ledger_retention)
        self.identity = IdentityResolver(self.credentials, session_factory)
        enqueue_registration, enqueue_push = (
            self._task_queues() if queue_tasks else (None, None)
        )
        self.tokens = ChatTokenService(
            self.backend, session_factory, enqueue_registration=enqueue_registration
        )
        self.config = ConfigSyncService(
            self.backend, session_factory, enqueue_push=enqueue_push
        )
        self.dispatcher = DeliveryDispatcher(self.registry)
        self.orchestrator = CallEventOrchestrator(
            config=self.config,
            validator=self.validator,
            contact_filter=self.contact_filter,
            ledger=self.ledger,
            tokens=self.tokens,
            identity=self.identity,
            dispatcher=self.dispatcher,
        )
        self.runtime = Runtime(
            call_handler=self.orchestrator.handle,
            reconcile_handler=self.reconcile,
            reconcile_interval=float(settings.config_sync_interval_seconds),
        )
        self.configured = True
        logger.info(
            "Configured delivery channels: %s",
            ", ".join(c.id for c in self.registry.list_channels()),
        )
        return self

    def reconcile(self) -> None:
        """Periodic housekeeping: config sync and expired-token cleanup."""
        self.config.reconcile()
        self.tokens.prune_expired()

    @staticmethod
    def _task_queues():
        """Celery enqueuers for token registration and config pushes."""
        from callrelay.tasks.chat_token_task import register_chat_token_task
        from callrelay.tasks.config_sync_task import push_config_task

        return register_chat_token_task.delay, push_config_task.delay


state = AppState()
