"""HTTP client for the remote backend that owns config, chat tokens and call history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from callrelay.config import get_settings
from callrelay.core.credentials import BearerCredentialProvider, apply_bearer
from callrelay.core.errors import TransientNetworkFailure
from callrelay.infra.logging_config import get_logger

logger = get_logger("backend_client")

CONFIG_PATH = "/automation/config"
CURRENT_TOKEN_PATH = "/chat/tokens/current"
REGENERATE_TOKEN_PATH = "/chat/tokens/regenerate"
INITIALIZE_DEVICE_TOKEN_PATH = "/chat/tokens/initialize-device"
REGENERATE_DEVICE_TOKEN_PATH = "/chat/tokens/regenerate-device"
REGISTER_TOKEN_PATH = "/chat/tokens"
CALLS_SYNC_PATH = "/calls/sync"
SEND_MISSED_CALL_PATH = "/sms/send-missed-call"
PUBLIC_ID_PATH = "/users/{user_id}/public-id"


@dataclass
class BackendResult:
    """Result of a backend call. data is the unwrapped envelope payload."""

    data: Optional[Dict[str, Any]] = None
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise TransientNetworkFailure(self.error, self.status_code)


class BackendClient:
    """Thin requests wrapper around the backend's {"success", "data"} envelope.

    Never raises for network or HTTP failures; callers inspect result.error.
    """

    def __init__(
        self,
        credentials: BearerCredentialProvider,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        settings = get_settings()
        self._credentials = credentials
        self._base_url = (base_url or settings.backend_api_url).rstrip("/")
        self._timeout = timeout or settings.backend_timeout_seconds
        self._http = session or requests.Session()

    @property
    def is_authenticated(self) -> bool:
        return bool(self._credentials.get_token())

    def get_automation_config(self) -> BackendResult:
        result = self._request("GET", CONFIG_PATH, auth_required=True)
        if result.ok and result.data is not None and "config" in result.data:
            result.data = result.data["config"]
        return result

    def put_automation_config(self, payload: Dict[str, Any]) -> BackendResult:
        return self._request("PUT", CONFIG_PATH, json=payload, auth_required=True)

    def get_current_token(self) -> BackendResult:
        return self._request("GET", CURRENT_TOKEN_PATH, auth_required=True)

    def regenerate_token(self) -> BackendResult:
        return self._request("POST", REGENERATE_TOKEN_PATH, auth_required=True)

    def initialize_device_token(
        self, device_user_id: str, token: Optional[str] = None
    ) -> BackendResult:
        body: Dict[str, Any] = {"deviceUserId": device_user_id}
        if token:
            body["token"] = token
        return self._request("POST", INITIALIZE_DEVICE_TOKEN_PATH, json=body)

    def regenerate_device_token(self, device_user_id: str) -> BackendResult:
        return self._request(
            "POST",
            REGENERATE_DEVICE_TOKEN_PATH,
            json={"deviceUserId": device_user_id},
        )

    def sync_calls(self, records: List[Dict[str, Any]]) -> BackendResult:
        return self._request(
            "POST", CALLS_SYNC_PATH, json={"missedCalls": records}, auth_required=True
        )

    def register_token(
        self, token: str, user_id: str, expires_at: Optional[str] = None
    ) -> BackendResult:
        body: Dict[str, Any] = {"token": token, "userId": user_id}
        if expires_at:
            body["expiresAt"] = expires_at
        return self._request("POST", REGISTER_TOKEN_PATH, json=body, auth_required=True)

    def send_missed_call(
        self,
        phone_number: str,
        text: str,
        call_id: Optional[str] = None,
        business_name: Optional[str] = None,
    ) -> BackendResult:
        body: Dict[str, Any] = {
            "phoneNumber": phone_number,
            "message": text,
            "callId": call_id,
            "businessName": business_name,
            "userId": self._credentials.get_user_id(),
        }
        return self._request(
            "POST", SEND_MISSED_CALL_PATH, json=body, auth_required=True
        )

    def get_public_id(self, user_id: str) -> Optional[str]:
        result = self._request("GET", PUBLIC_ID_PATH.format(user_id=user_id))
        if not result.ok or not result.data:
            return None
        return result.data.get("publicId")

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        auth_required: bool = False,
    ) -> BackendResult:
        headers: Dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        headers = apply_bearer(self._credentials, headers)
        if auth_required and "Authorization" not in headers:
            return BackendResult(error="No bearer credential available")

        url = f"{self._base_url}{path}"
        try:
            resp = self._http.request(
                method,
                url,
                json=json,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("Backend %s %s failed: %s", method, path, e)
            return BackendResult(error=str(e))

        if resp.status_code >= 400:
            return BackendResult(
                status_code=resp.status_code,
                error=f"HTTP {resp.status_code}: {resp.text[:500] if resp.text else 'no body'}",
            )

        if resp.status_code == 204 or not resp.content:
            return BackendResult(status_code=resp.status_code, data={})

        try:
            body = resp.json()
        except ValueError as e:
            return BackendResult(status_code=resp.status_code, error=f"Invalid JSON: {e}")

        if isinstance(body, dict) and body.get("success") is False:
            error = body.get("error") or {}
            message = (
                error.get("message") if isinstance(error, dict) else str(error)
            ) or "Backend reported failure"
            return BackendResult(status_code=resp.status_code, error=message)

        data = body.get("data") if isinstance(body, dict) else None
        return BackendResult(status_code=resp.status_code, data=data)
