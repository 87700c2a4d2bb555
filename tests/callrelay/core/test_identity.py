"""Tests for IdentityResolver."""

import re

from callrelay.constants.automation import IdentityKind
from callrelay.core.credentials import StaticCredentialProvider, apply_bearer
from callrelay.core.identity import IdentityResolver, generate_device_id, is_device_identity


def test_device_id_format():
    device_id = generate_device_id()
    assert re.fullmatch(r"device_\d+_[0-9a-z]{9}", device_id)
    assert is_device_identity(device_id)
    assert not is_device_identity("7b1f0c9e-user")


def test_device_id_is_stable(device_identity_resolver):
    first = device_identity_resolver.get_or_create_device_id()
    assert device_identity_resolver.get_or_create_device_id() == first


def test_anonymous_identity_is_the_device(device_identity_resolver):
    identity = device_identity_resolver.resolve()
    assert identity.kind == IdentityKind.DEVICE
    assert identity.is_device
    assert identity.identity_id == identity.device_id


def test_authenticated_identity_is_the_user_and_links_device(session_factory, faker):
    credentials = StaticCredentialProvider()
    resolver = IdentityResolver(credentials, session_factory)
    device_id = resolver.get_or_create_device_id()

    user_id = faker.uuid4()
    credentials.set_session(faker.sha256(), user_id)
    identity = resolver.resolve()

    assert identity.kind == IdentityKind.USER
    assert identity.identity_id == user_id
    assert identity.device_id == device_id
    assert resolver.linked_user_id(device_id) == user_id


def test_user_id_without_token_is_anonymous(faker):
    credentials = StaticCredentialProvider(token=None, user_id=faker.uuid4())
    assert credentials.get_user_id() is None
    assert "Authorization" not in apply_bearer(credentials, {})


def test_apply_bearer_copies_headers(faker):
    token = faker.sha256()
    headers = {"Accept": "application/json"}
    result = apply_bearer(StaticCredentialProvider(token=token), headers)
    assert result["Authorization"] == f"Bearer {token}"
    assert "Authorization" not in headers
