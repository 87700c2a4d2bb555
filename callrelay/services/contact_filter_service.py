"""Contact filter: is the caller already in the user's contact book?"""

from __future__ import annotations

import re
from typing import Optional

from callrelay.adapters.contacts import ContactLookup
from callrelay.config import get_settings
from callrelay.infra.logging_config import get_logger
from callrelay.schemas.contact import ContactMatch

logger = get_logger("contact_filter")

_KEEP_DIGITS_AND_PLUS = re.compile(r"[^\d+]")
NATIONAL_NUMBER_MIN_DIGITS = 9
INTERNATIONAL_DIAL_PREFIX = "00"


def normalize_phone_number(phone_number: str, country_code: str) -> str:
    """
    Canonical international form used for comparisons.

    "+359 888 123 456", "0888 123 456" and "888123456" all normalize to
    "+359888123456" for country code 359. Numbers that are already
    international ("+44 ..." or "0044 ...") keep their own country code.
    """
    normalized = _KEEP_DIGITS_AND_PLUS.sub("", phone_number or "")
    if normalized.startswith("+"):
        return "+" + normalized.lstrip("+")
    if normalized.startswith(INTERNATIONAL_DIAL_PREFIX):
        return "+" + normalized[len(INTERNATIONAL_DIAL_PREFIX):]
    if normalized.startswith(country_code):
        return "+" + normalized
    if normalized.startswith("0"):
        return "+" + country_code + normalized[1:]
    if len(normalized) >= NATIONAL_NUMBER_MIN_DIGITS:
        return "+" + country_code + normalized
    return normalized


class ContactFilterService:
    """Advisory filter; missing permission or lookup errors mean "unknown"."""

    def __init__(
        self, lookup: ContactLookup, country_code: Optional[str] = None
    ) -> None:
        self._lookup = lookup
        self._country_code = country_code or get_settings().default_country_code

    def is_known(self, phone_number: str) -> ContactMatch:
        try:
            if not self._lookup.has_permission():
                logger.debug("Contacts permission not granted; treating as unknown")
                return ContactMatch(is_known=False)
            target = normalize_phone_number(phone_number, self._country_code)
            for contact in self._lookup.list_contacts():
                for number in contact.phone_numbers:
                    if normalize_phone_number(number, self._country_code) == target:
                        return ContactMatch(
                            is_known=True,
                            display_name=contact.display_name or "Unknown",
                        )
        except Exception as e:
            logger.warning("Contact lookup failed, treating as unknown: %s", e)
        return ContactMatch(is_known=False)

    def request_permission(self) -> bool:
        try:
            return self._lookup.request_permission()
        except Exception as e:
            logger.warning("Contacts permission request failed: %s", e)
            return False
