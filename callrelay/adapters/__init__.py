"""Adapters for external collaborators (remote backend, contact book)."""

from callrelay.adapters.backend_client import BackendClient, BackendResult
from callrelay.adapters.contacts import (
    ContactLookup,
    InMemoryContactLookup,
    JsonFileContactLookup,
)

__all__ = [
    "BackendClient",
    "BackendResult",
    "ContactLookup",
    "InMemoryContactLookup",
    "JsonFileContactLookup",
]
