"""
Contact lookup interface.

The device contact book is an external collaborator; implementations wrap
it (or a file export of it) and expose permission state plus the contacts.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from callrelay.schemas.contact import Contact


class ContactLookup(ABC):
    """Contract for contact sources gated by a grantable permission."""

    @abstractmethod
    def has_permission(self) -> bool:
        """True if the contacts permission is granted."""
        ...

    @abstractmethod
    def list_contacts(self) -> list[Contact]:
        """Return all contacts. Only called when has_permission() is True."""
        ...

    def request_permission(self) -> bool:
        """Ask for the permission. Sources without a prompt report current state."""
        return self.has_permission()


class InMemoryContactLookup(ContactLookup):
    """Contacts held in memory; used by embedders that push contacts in."""

    def __init__(
        self, contacts: Optional[Iterable[Contact]] = None, granted: bool = True
    ) -> None:
        self._contacts = list(contacts or [])
        self._granted = granted

    def has_permission(self) -> bool:
        return self._granted

    def request_permission(self) -> bool:
        return self._granted

    def set_permission(self, granted: bool) -> None:
        self._granted = granted

    def list_contacts(self) -> list[Contact]:
        return list(self._contacts)

    def replace(self, contacts: Iterable[Contact]) -> None:
        self._contacts = list(contacts)


class JsonFileContactLookup(ContactLookup):
    """Contacts exported as a JSON list of {displayName, phoneNumbers}.

    A missing file is treated as a denied permission.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def has_permission(self) -> bool:
        return self._path.is_file()

    def list_contacts(self) -> list[Contact]:
        with self._path.open(encoding="utf-8") as fh:
            raw = json.load(fh)
        return [Contact.model_validate(item) for item in raw]
