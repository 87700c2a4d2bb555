"""Celery task registering locally generated chat tokens with the backend."""

from __future__ import annotations

from callrelay.infra.celery_app import celery_app
from callrelay.infra.logging_config import get_logger
from callrelay.tasks._services import get_worker_state

logger = get_logger("chat_tokens")


@celery_app.task(name="callrelay.tasks.chat_token_task.register_chat_token_task")
def register_chat_token_task(token: str, identity_id: str, kind: str) -> bool:
    registered = get_worker_state().tokens.register_remote(token, identity_id, kind)
    if not registered:
        logger.info("Chat token for %s left unregistered", identity_id)
    return registered
