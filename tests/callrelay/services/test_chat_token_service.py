"""Tests for ChatTokenService."""

import re
from datetime import timedelta

from callrelay.constants.automation import IdentityKind
from callrelay.models.chat_token import ChatToken
from callrelay.schemas.chat_token import ProviderIdentity
from callrelay.services.chat_token_service import ChatTokenService, generate_token
from tests.fixtures.backend_fixtures import ok_result
from tests.fixtures.service_fixtures import CHAT_BASE_URL


def _device(device_id="device_1700000000000_abcdefghi"):
    return ProviderIdentity(
        identity_id=device_id, kind=IdentityKind.DEVICE, device_id=device_id
    )


def _user(user_id, device_id=None):
    return ProviderIdentity(identity_id=user_id, kind=IdentityKind.USER, device_id=device_id)


def _token_of(url):
    return url.rsplit("/", 1)[-1]


def test_generate_token_is_short_and_url_safe():
    token = generate_token()
    assert re.fullmatch(r"[0-9A-Z]{10}", token)
    assert generate_token() != token


def test_remote_token_is_cached_and_returned(token_service, offline_backend, faker):
    user_id = faker.uuid4()
    url = f"{CHAT_BASE_URL}/u/abc/c/REMOTE0001"
    offline_backend.get_current_token.return_value = ok_result(
        {"token": "REMOTE0001", "chatUrl": url}
    )

    first = token_service.resolve_current_link(_user(user_id))
    second = token_service.resolve_current_link(_user(user_id))

    assert first == second == url
    current = token_service.current_token(_user(user_id))
    assert current.token == "REMOTE0001"
    assert current.origin == "remote"


def test_offline_generates_local_link_and_reuses_it(token_service, offline_backend):
    identity = _device()
    first = token_service.resolve_current_link(identity)
    second = token_service.resolve_current_link(identity)

    assert first == second
    assert first.startswith(f"{CHAT_BASE_URL}/c/")
    assert token_service.resolve_token(_token_of(first)) == identity.identity_id


def test_local_link_uses_public_id_for_users(token_service, offline_backend, faker):
    offline_backend.get_public_id.return_value = "maystor-42"
    url = token_service.resolve_current_link(_user(faker.uuid4()))
    assert url.startswith(f"{CHAT_BASE_URL}/u/maystor-42/c/")


def test_token_expires_exactly_after_ttl(token_service, clock):
    identity = _device()
    original = token_service.resolve_current_link(identity)

    clock.advance(hours=24, seconds=-1)
    assert token_service.resolve_current_link(identity) == original

    clock.advance(seconds=1)
    renewed = token_service.resolve_current_link(identity)
    assert renewed != original
    assert token_service.resolve_token(_token_of(original)) is None


def test_expired_remote_token_is_not_used(token_service, offline_backend, clock, faker):
    user_id = faker.uuid4()
    offline_backend.get_current_token.return_value = ok_result(
        {
            "token": "OLDTOKEN01",
            "chatUrl": f"{CHAT_BASE_URL}/c/OLDTOKEN01",
            "expiresAt": (clock.now - timedelta(minutes=1)).isoformat(),
        }
    )
    url = token_service.resolve_current_link(_user(user_id))
    assert _token_of(url) != "OLDTOKEN01"


def test_regenerate_keeps_old_token_resolvable(token_service, offline_backend):
    identity = _device()
    old = token_service.resolve_current_link(identity)

    offline_backend.regenerate_device_token.return_value = ok_result(
        {"token": "NEWTOKEN01", "chatUrl": f"{CHAT_BASE_URL}/c/NEWTOKEN01"}
    )
    new = token_service.regenerate(identity)

    assert new == f"{CHAT_BASE_URL}/c/NEWTOKEN01"
    assert token_service.current_token(identity).token == "NEWTOKEN01"
    assert token_service.resolve_token(_token_of(old)) == identity.identity_id


def test_regenerate_falls_back_to_local_when_offline(token_service):
    identity = _device()
    old = token_service.resolve_current_link(identity)
    new = token_service.regenerate(identity)
    assert new != old
    assert token_service.current_token(identity).conversation_url == new


def test_local_token_is_registered_with_backend(
    token_service, offline_backend, session_factory
):
    identity = _device()
    offline_backend.initialize_device_token.side_effect = [
        ok_result({}),  # current-token fetch returns nothing usable
        ok_result({"token": "ignored"}),  # registration
    ]
    url = token_service.resolve_current_link(identity)
    token = _token_of(url)

    registration = offline_backend.initialize_device_token.call_args_list[-1]
    assert registration.kwargs["token"] == token
    with session_factory() as db:
        row = db.query(ChatToken).filter(ChatToken.token == token).one()
        assert row.origin == "local"
        assert row.remote_registered is True


def test_failed_registration_leaves_token_usable(
    token_service, session_factory
):
    url = token_service.resolve_current_link(_device())
    with session_factory() as db:
        row = db.query(ChatToken).filter(ChatToken.token == _token_of(url)).one()
        assert row.remote_registered is False
        assert row.is_current is True


def test_reconcile_identity_moves_device_tokens_to_user(
    token_service, device_identity_resolver, faker
):
    device_id = device_identity_resolver.get_or_create_device_id()
    device = _device(device_id)
    url = token_service.resolve_current_link(device)
    user_id = faker.uuid4()

    moved = token_service.reconcile_identity(device_id, user_id)

    assert moved == 1
    assert token_service.current_token(_user(user_id)).conversation_url == url
    # The device id still resolves to the linked user's token.
    assert token_service.current_token(device).conversation_url == url
    assert token_service.resolve_token(_token_of(url)) == user_id


def test_reconcile_keeps_existing_user_current_token(
    token_service, offline_backend, faker
):
    user_id = faker.uuid4()
    offline_backend.get_current_token.return_value = ok_result(
        {"token": "USERTOKEN1", "chatUrl": f"{CHAT_BASE_URL}/c/USERTOKEN1"}
    )
    token_service.resolve_current_link(_user(user_id))
    offline_backend.get_current_token.return_value = ok_result({})

    device = _device()
    token_service.resolve_current_link(device)
    token_service.reconcile_identity(device.identity_id, user_id)

    assert token_service.current_token(_user(user_id)).token == "USERTOKEN1"


def test_prune_expired_removes_only_stale_superseded_tokens(token_service, clock):
    identity = _device()
    first = token_service.resolve_current_link(identity)
    token_service.regenerate(identity)

    assert token_service.prune_expired() == 0
    clock.advance(hours=25)
    assert token_service.prune_expired() == 1
    assert token_service.resolve_token(_token_of(first)) is None


def test_linked_device_reuses_one_token_after_sign_out(
    token_service, device_identity_resolver, clock, faker
):
    device_id = device_identity_resolver.get_or_create_device_id()
    device = _device(device_id)
    token_service.resolve_current_link(device)
    user_id = faker.uuid4()
    token_service.reconcile_identity(device_id, user_id)

    clock.advance(hours=25)
    first = token_service.resolve_current_link(device)
    second = token_service.resolve_current_link(device)

    assert first == second
    assert token_service.resolve_token(_token_of(first)) == user_id
    assert token_service.current_token(device).conversation_url == first


def test_failed_public_id_lookup_is_retried(token_service, offline_backend, faker):
    user = _user(faker.uuid4())
    offline_backend.get_public_id.side_effect = [None, "maystor-42"]

    first = token_service.resolve_current_link(user)
    assert first.startswith(f"{CHAT_BASE_URL}/c/")

    second = token_service.regenerate(user)
    assert second.startswith(f"{CHAT_BASE_URL}/u/maystor-42/c/")
    token_service.regenerate(user)
    assert offline_backend.get_public_id.call_count == 2


def test_registration_is_queued_when_a_queue_is_configured(
    offline_backend, session_factory, clock
):
    queued = []
    service = ChatTokenService(
        offline_backend,
        session_factory,
        chat_base_url=CHAT_BASE_URL,
        ttl_hours=24,
        clock=clock,
        enqueue_registration=lambda *args: queued.append(args),
    )
    identity = _device()
    offline_backend.initialize_device_token.side_effect = [ok_result({}), ok_result()]
    token = _token_of(service.resolve_current_link(identity))

    assert queued == [(token, identity.identity_id, "device")]
    assert service.register_remote(*queued[0]) is True
    assert service.register_remote(*queued[0]) is False
    assert offline_backend.initialize_device_token.call_count == 2
