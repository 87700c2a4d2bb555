"""Error taxonomy for the missed-call pipeline.

Every pipeline step classifies its own failures into one of these; none of
them escape to the call-event source.
"""

from __future__ import annotations

from typing import Optional


class CallRelayError(Exception):
    """Base class for pipeline errors."""


class PolicyRejection(CallRelayError):
    """A send was refused by policy (security gate or contact filter). Expected."""

    def __init__(self, reason: str, risk_level: Optional[str] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.risk_level = risk_level


class TransientNetworkFailure(CallRelayError):
    """The remote backend could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DeliveryFailure(CallRelayError):
    """A delivery channel failed to send a message."""

    def __init__(self, channel: str, message: str) -> None:
        super().__init__(f"{channel}: {message}")
        self.channel = channel
        self.detail = message


class PermissionDenied(CallRelayError):
    """A device permission (contacts or send) is missing."""

    def __init__(self, permission: str) -> None:
        super().__init__(f"Permission denied: {permission}")
        self.permission = permission
