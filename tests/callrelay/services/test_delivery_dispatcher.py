"""Tests for DeliveryDispatcher and the delivery channels."""

from unittest.mock import MagicMock

import pytest

from callrelay.channels.plugins.direct import DirectSmsChannel
from callrelay.channels.plugins.manual import ManualChannel, PendingManualSends
from callrelay.channels.plugins.relay import RelayChannel
from callrelay.channels.plugins.share import ShareChannel
from callrelay.constants.automation import DeliveryChannelId
from callrelay.core.registry import ChannelRegistry
from callrelay.services.delivery_dispatcher import DeliveryDispatcher
from tests.fixtures.backend_fixtures import ok_result

PHONE = "+359888123456"
TEXT = "Busy now. Chat here: https://chat.example.test/c/ABCDEFGH12"


@pytest.fixture
def share_capability():
    share = MagicMock()
    share.share_text.return_value = True
    return share


def _dispatcher(*channels, hook=None):
    registry = ChannelRegistry()
    for channel in channels:
        registry.register_channel(channel)
    return DeliveryDispatcher(registry, on_permission_denied=hook)


def test_direct_channel_delivers(sms_capability, manual_notifier):
    dispatcher = _dispatcher(DirectSmsChannel(sms_capability), ManualChannel(manual_notifier))
    result = dispatcher.send(PHONE, TEXT, call_id="call_1_x")

    assert result.ok is True
    assert result.handled is True
    assert result.channel_used == DeliveryChannelId.DIRECT
    sms_capability.send_text.assert_called_once_with(PHONE, TEXT)
    assert manual_notifier.list_pending() == []


def test_falls_back_to_share_when_direct_raises(
    sms_capability, share_capability, manual_notifier
):
    sms_capability.send_text.side_effect = RuntimeError("radio off")
    dispatcher = _dispatcher(
        DirectSmsChannel(sms_capability),
        ShareChannel(share_capability),
        ManualChannel(manual_notifier),
    )
    result = dispatcher.send(PHONE, TEXT)

    assert result.ok is True
    assert result.channel_used == DeliveryChannelId.SHARE
    assert result.errors == ["direct: radio off"]


def test_manual_fallback_surfaces_exact_text(
    sms_capability, share_capability, manual_notifier
):
    sms_capability.send_text.side_effect = RuntimeError("radio off")
    share_capability.share_text.return_value = False
    dispatcher = _dispatcher(
        DirectSmsChannel(sms_capability),
        ShareChannel(share_capability),
        ManualChannel(manual_notifier),
    )
    result = dispatcher.send(PHONE, TEXT, call_id="call_1_x")

    assert result.ok is False
    assert result.handled is True
    assert result.channel_used == DeliveryChannelId.MANUAL
    assert result.manual_text == TEXT
    assert [m.text for m in manual_notifier.list_pending()] == [TEXT]


def test_manual_channel_runs_after_programmatic_regardless_of_order(
    sms_capability, manual_notifier
):
    dispatcher = _dispatcher(ManualChannel(manual_notifier), DirectSmsChannel(sms_capability))
    result = dispatcher.send(PHONE, TEXT)
    assert result.channel_used == DeliveryChannelId.DIRECT
    assert manual_notifier.list_pending() == []


def test_send_permission_denial_is_surfaced_once(sms_capability, manual_notifier):
    sms_capability.has_send_permission.return_value = False
    hook = MagicMock()
    dispatcher = _dispatcher(
        DirectSmsChannel(sms_capability), ManualChannel(manual_notifier), hook=hook
    )

    for _ in range(3):
        result = dispatcher.send(PHONE, TEXT)
        assert result.handled is True
        assert result.ok is False

    hook.assert_called_once()
    assert hook.call_args.args[0].permission == "direct.send"
    assert dispatcher.permission_denial_surfaced is True
    sms_capability.send_text.assert_not_called()


def test_no_channel_left_is_unhandled(sms_capability):
    sms_capability.send_text.side_effect = RuntimeError("radio off")
    result = _dispatcher(DirectSmsChannel(sms_capability)).send(PHONE, TEXT)
    assert result.ok is False
    assert result.handled is False
    assert result.errors


def test_relay_channel_goes_first(offline_backend, sms_capability, faker):
    offline_backend.send_missed_call.return_value = ok_result({"messageId": faker.uuid4()})
    dispatcher = _dispatcher(
        RelayChannel(offline_backend, business_name="Maystor"),
        DirectSmsChannel(sms_capability),
    )
    result = dispatcher.send(PHONE, TEXT, call_id="call_1_x")

    assert result.channel_used == DeliveryChannelId.RELAY
    offline_backend.send_missed_call.assert_called_once_with(
        PHONE, TEXT, call_id="call_1_x", business_name="Maystor"
    )
    sms_capability.send_text.assert_not_called()


def test_relay_failure_falls_through_to_direct(offline_backend, sms_capability):
    dispatcher = _dispatcher(RelayChannel(offline_backend), DirectSmsChannel(sms_capability))
    result = dispatcher.send(PHONE, TEXT)
    assert result.channel_used == DeliveryChannelId.DIRECT
    assert result.errors[0].startswith("relay:")


def test_registry_rejects_duplicate_channels(sms_capability):
    registry = ChannelRegistry()
    registry.register_channel(DirectSmsChannel(sms_capability))
    with pytest.raises(ValueError):
        registry.register_channel(DirectSmsChannel(sms_capability))
