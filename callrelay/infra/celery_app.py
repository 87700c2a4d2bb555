"""Celery application for config pushes, token registration, reconcile and call upload."""

from celery import Celery

from callrelay.config import get_settings

settings = get_settings()

celery_app = Celery(
    settings.app_name,
    broker=settings.celery_broker_url,
    backend=settings.celery_broker_url,
    include=[
        "callrelay.tasks.config_sync_task",
        "callrelay.tasks.call_sync_task",
        "callrelay.tasks.chat_token_task",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_always_eager=settings.is_test,
    beat_schedule={
        "reconcile-automation-config": {
            "task": "callrelay.tasks.config_sync_task.reconcile_config_task",
            "schedule": float(settings.config_sync_interval_seconds),
        },
        "upload-call-records": {
            "task": "callrelay.tasks.call_sync_task.sync_call_records_task",
            "schedule": float(settings.config_sync_interval_seconds),
        },
    },
)
