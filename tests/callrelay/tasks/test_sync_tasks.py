"""Tests for the Celery config, token and call-upload tasks."""

from unittest.mock import patch

import pytest

from callrelay.models.chat_token import ChatToken
from callrelay.tasks.call_sync_task import sync_call_records_task, to_remote_record
from callrelay.tasks.chat_token_task import register_chat_token_task
from callrelay.tasks.config_sync_task import push_config_task, reconcile_config_task
from tests.fixtures.backend_fixtures import ok_result


@pytest.fixture
def worker_state(app_state):
    with patch("callrelay.tasks._services.state", app_state):
        yield app_state


def _process(app_state, event, sent=True):
    app_state.ledger.claim(event)
    app_state.ledger.mark_processed(
        event.call_id, message_sent=sent, channel_used="direct", outcome="sent"
    )


def test_reconcile_task_pulls_remote_config(worker_state, offline_backend):
    offline_backend.get_automation_config.return_value = ok_result(
        {"isEnabled": True, "message": "Remote [chat_link]"}
    )
    assert reconcile_config_task() is True
    assert worker_state.config.snapshot().message == "Remote [chat_link]"


def test_reconcile_task_offline_keeps_cache(worker_state):
    assert reconcile_config_task() is False


def test_sync_task_uploads_and_marks_records(worker_state, offline_backend, make_call_event):
    event = make_call_event(timestamp=1700000000000)
    _process(worker_state, event)
    offline_backend.sync_calls.return_value = ok_result()

    assert sync_call_records_task() == 1
    uploaded = offline_backend.sync_calls.call_args.args[0]
    assert uploaded[0]["callId"] == event.call_id
    assert uploaded[0]["messageSent"] is True
    assert sync_call_records_task() == 0


def test_sync_task_failure_retries_later(worker_state, offline_backend, make_call_event):
    _process(worker_state, make_call_event())
    assert sync_call_records_task() == 0
    assert len(worker_state.ledger.unsynced_records()) == 1


def test_to_remote_record_without_send(ledger, make_call_event):
    event = make_call_event(timestamp=5)
    ledger.claim(event)
    record = ledger.mark_processed(event.call_id, outcome="failed")
    payload = to_remote_record(record)
    assert payload["sentAt"] is None
    assert payload["timestamp"] == 5


def test_push_task_sends_local_settings(worker_state, offline_backend):
    worker_state.config.update_template("Queued edit [chat_link]")
    assert worker_state.config.is_push_pending() is True

    offline_backend.put_automation_config.return_value = ok_result()
    assert push_config_task.delay().get() is True
    pushed = offline_backend.put_automation_config.call_args.args[0]
    assert pushed["message"] == "Queued edit [chat_link]"
    assert worker_state.config.is_push_pending() is False


def test_push_task_offline_keeps_edit_pending(worker_state):
    worker_state.config.toggle(True)
    assert push_config_task() is False
    assert worker_state.config.is_push_pending() is True


def test_register_task_marks_local_token(
    worker_state, offline_backend, session_factory
):
    identity = worker_state.identity.resolve()
    url = worker_state.tokens.resolve_current_link(identity)
    token = url.rsplit("/", 1)[-1]

    offline_backend.initialize_device_token.return_value = ok_result()
    assert register_chat_token_task(token, identity.identity_id, "device") is True
    with session_factory() as db:
        row = db.query(ChatToken).filter(ChatToken.token == token).one()
        assert row.remote_registered is True
