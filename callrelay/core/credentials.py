"""Bearer credential provider consumed from the authentication layer.

Authentication itself lives outside callrelay; the pipeline only needs an
opaque bearer token and, when a session exists, the authenticated user id.
"""

from __future__ import annotations

from typing import Dict, Optional, Protocol

from callrelay.config import get_settings


class BearerCredentialProvider(Protocol):
    def get_token(self) -> Optional[str]: ...

    def get_user_id(self) -> Optional[str]: ...


class StaticCredentialProvider:
    """Provider backed by fixed values (settings or an explicit login hand-off)."""

    def __init__(
        self, token: Optional[str] = None, user_id: Optional[str] = None
    ) -> None:
        self._token = token
        self._user_id = user_id

    @classmethod
    def from_settings(cls) -> "StaticCredentialProvider":
        settings = get_settings()
        return cls(token=settings.backend_auth_token, user_id=settings.backend_user_id)

    def get_token(self) -> Optional[str]:
        return self._token

    def get_user_id(self) -> Optional[str]:
        return self._user_id if self._token else None

    def set_session(self, token: Optional[str], user_id: Optional[str]) -> None:
        """Called by the auth layer on login/logout."""
        self._token = token
        self._user_id = user_id


def apply_bearer(
    provider: BearerCredentialProvider, headers: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    """Return a copy of headers with Authorization set when a token exists."""
    result = dict(headers) if headers else {}
    token = provider.get_token()
    if token:
        result["Authorization"] = f"Bearer {token}"
    return result
