"""Fixtures for call events and contacts."""

import pytest

from callrelay.adapters.contacts import InMemoryContactLookup
from callrelay.constants.automation import CallSource
from callrelay.schemas.call import CallEvent
from callrelay.schemas.contact import Contact

UNKNOWN_CALLER = "+359888123456"
KNOWN_CALLER = "+359877654321"


@pytest.fixture(scope="function")
def make_call_event(faker):
    """Factory for CallEvent; defaults to a live call from an unknown mobile."""

    def _make(phone_number=UNKNOWN_CALLER, timestamp=None, source=CallSource.LIVE):
        return CallEvent(
            phone_number=phone_number,
            timestamp=timestamp
            if timestamp is not None
            else int(faker.unix_time()) * 1000,
            source=source,
        )

    return _make


@pytest.fixture(scope="function")
def contact_lookup(faker):
    """Granted contact book holding KNOWN_CALLER in national format."""
    return InMemoryContactLookup(
        contacts=[
            Contact(display_name=faker.name(), phone_numbers=["0877 654 321"]),
            Contact(display_name=faker.name(), phone_numbers=[]),
        ],
        granted=True,
    )
