# Import celery app first
from callrelay.infra.celery_app import celery_app

# Initialize logging configuration for Celery workers
from callrelay.infra.logging_config import LoggingConfig
from callrelay.tasks.call_sync_task import sync_call_records_task
from callrelay.tasks.chat_token_task import register_chat_token_task
from callrelay.tasks.config_sync_task import push_config_task, reconcile_config_task

LoggingConfig()

__all__ = [
    "celery_app",
    "push_config_task",
    "reconcile_config_task",
    "register_chat_token_task",
    "sync_call_records_task",
]
