"""Provider identity resolution: authenticated user id, else a stable device id."""

from __future__ import annotations

import secrets
import string
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from callrelay.constants.automation import DEVICE_IDENTITY_PREFIX, IdentityKind
from callrelay.core.credentials import BearerCredentialProvider
from callrelay.db import SessionLocal
from callrelay.infra.logging_config import get_logger
from callrelay.models.device_identity import DeviceIdentity
from callrelay.schemas.chat_token import ProviderIdentity

logger = get_logger("identity")

_BASE36 = string.digits + string.ascii_lowercase


def generate_device_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{DEVICE_IDENTITY_PREFIX}{int(time.time() * 1000)}_{suffix}"


def is_device_identity(identity_id: str) -> bool:
    return identity_id.startswith(DEVICE_IDENTITY_PREFIX)


class IdentityResolver:
    """Produces the canonical ProviderIdentity used as the token-cache key."""

    def __init__(
        self,
        credentials: BearerCredentialProvider,
        session_factory: Callable[[], Session] = SessionLocal,
    ) -> None:
        self._credentials = credentials
        self._session_factory = session_factory
        self._lock = threading.Lock()

    def get_or_create_device_id(self) -> str:
        with self._lock, self._session_factory() as db:
            row = db.query(DeviceIdentity).order_by(DeviceIdentity.id.asc()).first()
            if row is not None:
                return row.device_id
            device_id = generate_device_id()
            db.add(DeviceIdentity(device_id=device_id))
            db.commit()
            logger.info("Created device identity %s", device_id)
            return device_id

    def resolve(self) -> ProviderIdentity:
        device_id = self.get_or_create_device_id()
        user_id = self._credentials.get_user_id()
        if user_id:
            self._link(device_id, user_id)
            return ProviderIdentity(
                identity_id=user_id, kind=IdentityKind.USER, device_id=device_id
            )
        return ProviderIdentity(
            identity_id=device_id, kind=IdentityKind.DEVICE, device_id=device_id
        )

    def linked_user_id(self, device_id: str) -> Optional[str]:
        with self._session_factory() as db:
            row = (
                db.query(DeviceIdentity)
                .filter(DeviceIdentity.device_id == device_id)
                .first()
            )
            return row.linked_user_id if row else None

    def _link(self, device_id: str, user_id: str) -> None:
        with self._lock, self._session_factory() as db:
            row = (
                db.query(DeviceIdentity)
                .filter(DeviceIdentity.device_id == device_id)
                .first()
            )
            if row is None or row.linked_user_id == user_id:
                return
            row.linked_user_id = user_id
            row.linked_at = datetime.now(timezone.utc)
            db.commit()
            logger.info("Linked device identity %s to user %s", device_id, user_id)
