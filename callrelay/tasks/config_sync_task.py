"""Celery task for periodic reconciliation of the automation settings."""

from __future__ import annotations

from callrelay.infra.celery_app import celery_app
from callrelay.infra.logging_config import get_logger
from callrelay.tasks._services import get_worker_state

logger = get_logger("config_sync")


@celery_app.task(name="callrelay.tasks.config_sync_task.reconcile_config_task")
def reconcile_config_task() -> bool:
    """
    Retry a pending push, pull the remote config and prune expired tokens.
    Returns the enablement flag after the merge.
    """
    app_state = get_worker_state()
    snapshot = app_state.config.reconcile()
    pruned = app_state.tokens.prune_expired()
    if pruned:
        logger.info("Pruned %d expired chat tokens", pruned)
    return snapshot.is_enabled


@celery_app.task(name="callrelay.tasks.config_sync_task.push_config_task")
def push_config_task() -> bool:
    """Push the local automation settings queued by a user edit."""
    return get_worker_state().config.push()
