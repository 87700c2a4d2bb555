"""
Chat token manager: issues, rotates and resolves chat-access tokens.

Per provider identity a token moves NoToken -> Current -> Stale (24h or an
explicit regenerate) -> Current. The backend is authoritative; the local
table is a cache that also lets the device keep sending while offline.
"""

from __future__ import annotations

import secrets
import string
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from callrelay.adapters.backend_client import BackendClient, BackendResult
from callrelay.config import get_settings
from callrelay.constants.automation import IdentityKind, TokenOrigin
from callrelay.core.errors import TransientNetworkFailure
from callrelay.db import SessionLocal
from callrelay.infra.logging_config import get_logger, mask_token
from callrelay.models.chat_token import ChatToken
from callrelay.models.device_identity import DeviceIdentity
from callrelay.schemas.chat_token import ChatTokenRead, ProviderIdentity, RemoteChatToken

logger = get_logger("chat_tokens")

TOKEN_ALPHABET = string.digits + string.ascii_uppercase
TOKEN_RANDOM_LENGTH = 8

Clock = Callable[[], datetime]
# (token, identity_id, identity kind)
RegistrationQueue = Callable[[str, str, str], Any]


def generate_token() -> str:
    """Short URL-safe token: random base-36 characters plus a 2-digit time component."""
    random_part = "".join(
        secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_RANDOM_LENGTH)
    )
    time_part = f"{int(time.time() * 1000) % 100:02d}"
    return random_part + time_part


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ChatTokenService:
    """Per-identity token cache backed by the remote token endpoints."""

    def __init__(
        self,
        backend: BackendClient,
        session_factory: Callable[[], Session] = SessionLocal,
        *,
        chat_base_url: Optional[str] = None,
        ttl_hours: Optional[int] = None,
        clock: Clock = _utcnow,
        enqueue_registration: Optional[RegistrationQueue] = None,
    ) -> None:
        settings = get_settings()
        self._backend = backend
        self._session_factory = session_factory
        self._chat_base_url = (chat_base_url or settings.chat_base_url).rstrip("/")
        self._ttl = timedelta(hours=ttl_hours or settings.chat_token_ttl_hours)
        self._clock = clock
        self._enqueue_registration = enqueue_registration
        self._lock = threading.RLock()
        self._public_ids: Dict[str, str] = {}

    # Resolution

    def resolve_current_link(self, identity: ProviderIdentity) -> Optional[str]:
        """
        Return the conversation URL of the current token for identity.

        Remote current token first; then an unexpired cached token; finally a
        locally generated token whose backend registration is queued. Device ids
        linked to a user read and write the user's tokens.
        """
        if identity.kind == IdentityKind.USER and identity.device_id:
            self.reconcile_identity(identity.device_id, identity.identity_id)

        key = self._canonical_key(identity.identity_id)

        remote = self._fetch_remote_current(identity)
        if remote is not None:
            url = self._store_remote(key, remote)
            if url is not None:
                return url

        with self._session_factory() as db:
            row = self._current_row(db, key)
            if row is not None and not self._is_expired(row):
                return row.conversation_url

        return self._issue_local(identity, key)

    def regenerate(self, identity: ProviderIdentity) -> Optional[str]:
        """Force a new current token. Older unexpired tokens stay resolvable."""
        if identity.kind == IdentityKind.USER:
            result = self._backend.regenerate_token()
        else:
            result = self._backend.regenerate_device_token(identity.identity_id)

        key = self._canonical_key(identity.identity_id)
        remote = self._parse_remote(result)
        if remote is not None:
            url = self._store_remote(key, remote, force_new=True)
            if url is not None:
                logger.info(
                    "Regenerated chat token for %s via backend", identity.identity_id
                )
                return url

        logger.warning(
            "Backend regenerate failed for %s (%s); generating locally",
            identity.identity_id,
            result.error,
        )
        return self._issue_local(identity, key)

    def current_token(self, identity: ProviderIdentity) -> Optional[ChatTokenRead]:
        """Cached current token if it has not expired. No network."""
        key = self._canonical_key(identity.identity_id)
        with self._session_factory() as db:
            row = self._current_row(db, key)
            if row is None or self._is_expired(row):
                return None
            return ChatTokenRead.model_validate(row)

    def resolve_token(self, token: str) -> Optional[str]:
        """Owning identity of any unexpired token, current or superseded."""
        with self._session_factory() as db:
            row = db.query(ChatToken).filter(ChatToken.token == token).first()
            if row is None or self._is_expired(row):
                return None
            return row.provider_identity

    # Identity remapping

    def reconcile_identity(self, device_id: str, user_id: str) -> int:
        """Move device-keyed token rows onto the authenticated identity."""
        with self._lock, self._session_factory() as db:
            rows = (
                db.query(ChatToken)
                .filter(ChatToken.provider_identity == device_id)
                .all()
            )
            if not rows:
                return 0
            user_has_current = self._current_row(db, user_id) is not None
            for row in rows:
                row.provider_identity = user_id
                if user_has_current:
                    row.is_current = False
            device = (
                db.query(DeviceIdentity)
                .filter(DeviceIdentity.device_id == device_id)
                .first()
            )
            if device is not None and device.linked_user_id is None:
                device.linked_user_id = user_id
                device.linked_at = self._clock()
            db.commit()
        logger.info(
            "Remapped %d chat tokens from %s to %s", len(rows), device_id, user_id
        )
        return len(rows)

    def prune_expired(self) -> int:
        """Delete expired tokens that are no longer current."""
        now = self._clock()
        with self._lock, self._session_factory() as db:
            rows = db.query(ChatToken).filter(ChatToken.is_current.is_(False)).all()
            expired = [r for r in rows if _aware(r.expires_at) <= now]
            for row in expired:
                db.delete(row)
            db.commit()
        return len(expired)

    # Internals

    def _fetch_remote_current(
        self, identity: ProviderIdentity
    ) -> Optional[RemoteChatToken]:
        if identity.kind == IdentityKind.USER:
            result = self._backend.get_current_token()
        else:
            result = self._backend.initialize_device_token(identity.identity_id)
        if not result.ok:
            logger.info(
                "Remote current token unavailable for %s: %s",
                identity.identity_id,
                result.error,
            )
        return self._parse_remote(result)

    @staticmethod
    def _parse_remote(result: BackendResult) -> Optional[RemoteChatToken]:
        if not result.ok or not result.data:
            return None
        try:
            return RemoteChatToken.model_validate(result.data)
        except ValidationError as e:
            logger.warning("Invalid chat token payload from backend: %s", e)
            return None

    def _store_remote(
        self, identity_id: str, remote: RemoteChatToken, force_new: bool = False
    ) -> Optional[str]:
        """Cache a backend token as current. Returns None if it is already expired."""
        now = self._clock()
        with self._lock, self._session_factory() as db:
            existing = (
                db.query(ChatToken).filter(ChatToken.token == remote.token).first()
            )
            issued_at = _aware(remote.issued_at) or (
                _aware(existing.issued_at) if existing is not None else now
            )
            expires_at = _aware(remote.expires_at) or issued_at + self._ttl
            if expires_at <= now:
                logger.info(
                    "Backend token %s for %s is expired",
                    mask_token(remote.token),
                    identity_id,
                )
                return None

            if existing is None:
                existing = ChatToken(
                    provider_identity=identity_id,
                    token=remote.token,
                    conversation_url=remote.conversation_url,
                    issued_at=issued_at,
                    expires_at=expires_at,
                    origin=TokenOrigin.REMOTE.value,
                    remote_registered=True,
                )
                db.add(existing)
            elif not force_new and existing.is_current:
                return existing.conversation_url
            else:
                existing.provider_identity = identity_id
                existing.conversation_url = remote.conversation_url
                existing.expires_at = expires_at
                existing.remote_registered = True

            self._demote_current(db, identity_id, keep_token=remote.token)
            existing.is_current = True
            db.commit()
            url = existing.conversation_url
        logger.info(
            "Cached backend chat token %s for %s", mask_token(remote.token), identity_id
        )
        return url

    def _issue_local(self, identity: ProviderIdentity, key: str) -> str:
        token = generate_token()
        url = self._build_url(identity, token)
        now = self._clock()
        with self._lock, self._session_factory() as db:
            self._demote_current(db, key, keep_token=None)
            db.add(
                ChatToken(
                    provider_identity=key,
                    token=token,
                    conversation_url=url,
                    issued_at=now,
                    expires_at=now + self._ttl,
                    is_current=True,
                    origin=TokenOrigin.LOCAL.value,
                    remote_registered=False,
                )
            )
            db.commit()
        logger.info("Generated local chat token %s for %s", mask_token(token), key)
        self._schedule_registration(token, identity)
        return url

    def register_remote(self, token: str, identity_id: str, kind: str) -> bool:
        """
        Register a locally generated token with the backend.

        Runs from the registration task. A failure leaves the token usable
        locally and unregistered.
        """
        with self._session_factory() as db:
            row = db.query(ChatToken).filter(ChatToken.token == token).first()
            if row is None or row.remote_registered:
                return False
            expires_at = _aware(row.expires_at)
        try:
            if kind == IdentityKind.USER.value:
                result = self._backend.register_token(
                    token, identity_id, expires_at.isoformat()
                )
            else:
                result = self._backend.initialize_device_token(identity_id, token=token)
            result.raise_for_error()
        except TransientNetworkFailure as e:
            logger.warning("Registration of %s failed: %s", mask_token(token), e)
            return False
        with self._lock, self._session_factory() as db:
            row = db.query(ChatToken).filter(ChatToken.token == token).first()
            if row is not None:
                row.remote_registered = True
                db.commit()
        return True

    def _schedule_registration(self, token: str, identity: ProviderIdentity) -> None:
        kind = IdentityKind(identity.kind).value
        if self._enqueue_registration is None:
            self.register_remote(token, identity.identity_id, kind)
            return
        try:
            self._enqueue_registration(token, identity.identity_id, kind)
        except Exception as e:
            logger.warning(
                "Could not queue registration of %s: %s", mask_token(token), e
            )

    def _build_url(self, identity: ProviderIdentity, token: str) -> str:
        public_id = None
        if identity.kind == IdentityKind.USER:
            public_id = self._public_ids.get(identity.identity_id)
            if public_id is None:
                public_id = self._backend.get_public_id(identity.identity_id)
                # Lookup failures are retried on the next link.
                if public_id:
                    self._public_ids[identity.identity_id] = public_id
        if public_id:
            return f"{self._chat_base_url}/u/{public_id}/c/{token}"
        return f"{self._chat_base_url}/c/{token}"

    def _canonical_key(self, identity_id: str) -> str:
        """Device ids that were linked to a user resolve to the user's tokens."""
        with self._session_factory() as db:
            device = (
                db.query(DeviceIdentity)
                .filter(DeviceIdentity.device_id == identity_id)
                .first()
            )
            if device is not None and device.linked_user_id:
                return device.linked_user_id
        return identity_id

    @staticmethod
    def _current_row(db: Session, identity_id: str) -> Optional[ChatToken]:
        return (
            db.query(ChatToken)
            .filter(
                ChatToken.provider_identity == identity_id,
                ChatToken.is_current.is_(True),
            )
            .order_by(ChatToken.issued_at.desc())
            .first()
        )

    @staticmethod
    def _demote_current(
        db: Session, identity_id: str, keep_token: Optional[str]
    ) -> None:
        query = db.query(ChatToken).filter(
            ChatToken.provider_identity == identity_id,
            ChatToken.is_current.is_(True),
        )
        if keep_token is not None:
            query = query.filter(ChatToken.token != keep_token)
        for row in query.all():
            row.is_current = False

    def _is_expired(self, row: ChatToken) -> bool:
        return _aware(row.expires_at) <= self._clock()
