from callrelay.models.automation_config import AutomationConfig
from callrelay.models.call_record import CallRecord
from callrelay.models.chat_token import ChatToken
from callrelay.models.device_identity import DeviceIdentity

__all__ = [
    "AutomationConfig",
    "CallRecord",
    "ChatToken",
    "DeviceIdentity",
]
