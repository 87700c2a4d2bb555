"""Tests for AppState wiring."""

from unittest.mock import patch

from callrelay.core.app_state import AppState
from callrelay.core.credentials import StaticCredentialProvider


def _configure(session_factory, offline_backend, **kwargs):
    kwargs.setdefault("credentials", StaticCredentialProvider())
    return AppState().configure(
        session_factory=session_factory,
        backend=offline_backend,
        queue_tasks=False,
        **kwargs,
    )


def test_channels_in_fallback_order(app_state):
    assert [c.id for c in app_state.registry.list_channels()] == ["direct", "manual"]


def test_relay_channel_used_when_backend_token_configured(
    session_factory, offline_backend, sms_capability, user_credentials
):
    state = _configure(
        session_factory, offline_backend, credentials=user_credentials, sms=sms_capability
    )
    assert [c.id for c in state.registry.list_channels()] == ["relay", "direct", "manual"]


def test_relay_channel_can_be_disabled(
    monkeypatch, session_factory, offline_backend, user_credentials
):
    monkeypatch.setenv("RELAY_CHANNEL_ENABLED", "false")
    state = _configure(session_factory, offline_backend, credentials=user_credentials)
    assert [c.id for c in state.registry.list_channels()] == ["manual"]


def test_relay_channel_can_be_forced_on(
    monkeypatch, session_factory, offline_backend, sms_capability
):
    monkeypatch.setenv("RELAY_CHANNEL_ENABLED", "true")
    state = _configure(session_factory, offline_backend, sms=sms_capability)
    assert [c.id for c in state.registry.list_channels()] == ["relay", "direct", "manual"]


def test_missing_programmatic_channel_is_reported(session_factory, offline_backend):
    with patch("callrelay.core.app_state.logger") as log:
        state = _configure(session_factory, offline_backend)
    assert state.configured is True
    assert [c.id for c in state.registry.list_channels()] == ["manual"]
    assert "No programmatic delivery channel" in log.warning.call_args.args[0]


def test_contacts_file_setting(monkeypatch, tmp_path, session_factory, offline_backend):
    path = tmp_path / "contacts.json"
    path.write_text('[{"displayName": "Ivan", "phoneNumbers": ["0877654321"]}]')
    monkeypatch.setenv("CONTACTS_FILE", str(path))
    state = _configure(session_factory, offline_backend)
    assert state.contact_filter.is_known("+359877654321").display_name == "Ivan"


def test_reconcile_runs_config_sync_and_token_cleanup(app_state, offline_backend):
    app_state.reconcile()
    offline_backend.get_automation_config.assert_called_once()


def test_edits_are_queued_as_celery_tasks(session_factory, offline_backend):
    with patch(
        "callrelay.tasks.config_sync_task.push_config_task.delay"
    ) as push_delay:
        state = AppState().configure(
            session_factory=session_factory,
            credentials=StaticCredentialProvider(),
            backend=offline_backend,
        )
        state.config.toggle(True)

    push_delay.assert_called_once_with()
    offline_backend.put_automation_config.assert_not_called()
    assert state.config.is_push_pending() is True
