from callrelay.services.chat_token_service import ChatTokenService
from callrelay.services.config_sync_service import ConfigSyncService
from callrelay.services.contact_filter_service import ContactFilterService
from callrelay.services.dedup_ledger_service import DedupLedgerService
from callrelay.services.delivery_dispatcher import DeliveryDispatcher
from callrelay.services.security_validator import SecurityValidator

__all__ = [
    "ChatTokenService",
    "ConfigSyncService",
    "ContactFilterService",
    "DedupLedgerService",
    "DeliveryDispatcher",
    "SecurityValidator",
]
