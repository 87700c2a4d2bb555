"""Enumerations and defaults for the missed-call automation."""

from enum import StrEnum

CHAT_LINK_PLACEHOLDER = "[chat_link]"
GENERATING_LINK_TEXT = "Generating chat link..."

DEFAULT_MESSAGE_TEMPLATE = (
    "Zaet sum, shte vurna obajdane sled nqkolko minuti.\n\n"
    "Zapochnete chat tuk:\n"
    f"{CHAT_LINK_PLACEHOLDER}\n\n"
)

DEVICE_IDENTITY_PREFIX = "device_"


class CallSource(StrEnum):
    """Where a call event came from."""

    LIVE = "live"
    TEST = "test"


class RiskLevel(StrEnum):
    LOW = "low"
    HIGH = "high"
    CRITICAL = "critical"


class IdentityKind(StrEnum):
    USER = "user"
    DEVICE = "device"


class TokenOrigin(StrEnum):
    """Whether a chat token was issued by the backend or generated on device."""

    REMOTE = "remote"
    LOCAL = "local"


class DeliveryChannelId(StrEnum):
    RELAY = "relay"
    DIRECT = "direct"
    SHARE = "share"
    MANUAL = "manual"


class CallOutcomeStatus(StrEnum):
    """Terminal state of one call event in the orchestrator."""

    DISABLED = "disabled"
    BLOCKED = "blocked"
    KNOWN_CONTACT = "known_contact"
    DUPLICATE = "duplicate"
    TEST_EVENT = "test_event"
    SENT = "sent"
    MANUAL = "manual"
    FAILED = "failed"
    ERROR = "error"
