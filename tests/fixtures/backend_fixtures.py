"""Fixtures for the remote backend client and bearer credentials."""

from unittest.mock import MagicMock

import pytest

from callrelay.adapters.backend_client import BackendClient, BackendResult
from callrelay.core.credentials import StaticCredentialProvider

OFFLINE = "Connection refused"


def offline_result() -> BackendResult:
    return BackendResult(error=OFFLINE)


def ok_result(data=None) -> BackendResult:
    return BackendResult(status_code=200, data=data if data is not None else {})


@pytest.fixture(scope="function")
def offline_backend():
    """
    BackendClient double where every endpoint fails as if the network is down.
    Tests switch individual methods to succeed as needed.
    """
    backend = MagicMock(spec=BackendClient)
    for name in (
        "get_automation_config",
        "put_automation_config",
        "get_current_token",
        "regenerate_token",
        "initialize_device_token",
        "regenerate_device_token",
        "sync_calls",
        "register_token",
        "send_missed_call",
    ):
        getattr(backend, name).return_value = offline_result()
    backend.get_public_id.return_value = None
    backend.is_authenticated = False
    return backend


@pytest.fixture(scope="function")
def anonymous_credentials():
    return StaticCredentialProvider()


@pytest.fixture(scope="function")
def user_credentials(faker):
    return StaticCredentialProvider(token=faker.sha256(), user_id=faker.uuid4())
