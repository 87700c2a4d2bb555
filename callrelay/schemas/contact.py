from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class Contact(BaseModel):
    """One entry from the device contact book."""

    display_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("display_name", "displayName")
    )
    phone_numbers: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("phone_numbers", "phoneNumbers"),
    )


class ContactMatch(BaseModel):
    is_known: bool
    display_name: Optional[str] = None
