"""
Per-call pipeline: enablement, security gate, contact filter, dedup, then
link resolution, composition and delivery.

Blocking steps (database, requests) run in worker threads. Nothing raised by
a step escapes handle(); every event ends in a CallOutcome.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

from callrelay.constants.automation import CallOutcomeStatus, CallSource
from callrelay.core.composer import compose
from callrelay.core.errors import PolicyRejection
from callrelay.core.identity import IdentityResolver
from callrelay.infra.logging_config import get_logger
from callrelay.schemas.call import CallEvent, CallOutcome
from callrelay.schemas.delivery import DeliveryResult
from callrelay.services.chat_token_service import ChatTokenService
from callrelay.services.config_sync_service import ConfigSyncService
from callrelay.services.contact_filter_service import ContactFilterService
from callrelay.services.dedup_ledger_service import DedupLedgerService
from callrelay.services.delivery_dispatcher import DeliveryDispatcher
from callrelay.services.security_validator import SecurityValidator

logger = get_logger("orchestrator")


class CallEventOrchestrator:
    def __init__(
        self,
        config: ConfigSyncService,
        validator: SecurityValidator,
        contact_filter: ContactFilterService,
        ledger: DedupLedgerService,
        tokens: ChatTokenService,
        identity: IdentityResolver,
        dispatcher: DeliveryDispatcher,
    ) -> None:
        self._config = config
        self._validator = validator
        self._contact_filter = contact_filter
        self._ledger = ledger
        self._tokens = tokens
        self._identity = identity
        self._dispatcher = dispatcher

    async def handle(self, event: CallEvent) -> CallOutcome:
        call_id = event.call_id
        try:
            return await self._process(event)
        except PolicyRejection as e:
            logger.info("Call %s rejected by policy: %s", call_id, e.reason)
            return CallOutcome(
                call_id=call_id, status=CallOutcomeStatus.BLOCKED, reason=e.reason
            )
        except Exception as e:
            logger.exception("Processing of call %s failed", call_id)
            return CallOutcome(
                call_id=call_id, status=CallOutcomeStatus.ERROR, reason=str(e)
            )

    async def _process(self, event: CallEvent) -> CallOutcome:
        call_id = event.call_id
        config = await asyncio.to_thread(self._config.snapshot)

        if not config.is_enabled:
            logger.debug("Automation disabled; ignoring call %s", call_id)
            return CallOutcome(call_id=call_id, status=CallOutcomeStatus.DISABLED)

        verdict = self._validator.validate(event.phone_number)
        if not verdict.allowed:
            raise PolicyRejection(verdict.reason or "blocked", verdict.risk_level)

        if event.source == CallSource.TEST:
            logger.info("Test call %s passed the security gate; not sending", call_id)
            return CallOutcome(call_id=call_id, status=CallOutcomeStatus.TEST_EVENT)

        if config.filter_known_contacts:
            match = await asyncio.to_thread(
                self._contact_filter.is_known, event.phone_number
            )
            if match.is_known:
                logger.info(
                    "Call %s is from known contact %s; skipping",
                    call_id,
                    match.display_name,
                )
                return CallOutcome(
                    call_id=call_id,
                    status=CallOutcomeStatus.KNOWN_CONTACT,
                    reason=match.display_name,
                )

        claimed = await asyncio.to_thread(self._ledger.claim, event)
        if not claimed:
            logger.info("Call %s already processed; skipping", call_id)
            return CallOutcome(call_id=call_id, status=CallOutcomeStatus.DUPLICATE)

        result: Optional[DeliveryResult] = None
        try:
            result = await asyncio.to_thread(self._deliver, event, config.message)
        finally:
            outcome = self._classify(result)
            await asyncio.to_thread(
                self._ledger.mark_processed,
                call_id,
                message_sent=bool(result and result.ok),
                channel_used=result.channel_used if result else None,
                outcome=outcome,
                phone_number=event.phone_number,
                call_timestamp=event.timestamp,
            )

        if result.ok:
            await asyncio.to_thread(
                self._config.record_delivery, datetime.now(timezone.utc)
            )
        return CallOutcome(
            call_id=call_id,
            status=outcome,
            channel_used=result.channel_used,
            reason="; ".join(result.errors) or None,
        )

    def _deliver(self, event: CallEvent, template: str) -> DeliveryResult:
        identity = self._identity.resolve()
        link = self._tokens.resolve_current_link(identity)
        text = compose(template, link)
        return self._dispatcher.send(event.phone_number, text, call_id=event.call_id)

    @staticmethod
    def _classify(result: Optional[DeliveryResult]) -> CallOutcomeStatus:
        if result is None:
            return CallOutcomeStatus.ERROR
        if result.ok:
            return CallOutcomeStatus.SENT
        if result.handled:
            return CallOutcomeStatus.MANUAL
        return CallOutcomeStatus.FAILED
