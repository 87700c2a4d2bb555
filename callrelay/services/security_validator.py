"""Security gate that classifies destination numbers before any send."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Pattern, Sequence

from callrelay.constants import premium_patterns
from callrelay.constants.automation import RiskLevel
from callrelay.schemas.security import SecurityVerdict

_NON_DIGITS = re.compile(r"\D")


def _compile(patterns: Iterable[str]) -> tuple[Pattern[str], ...]:
    return tuple(re.compile(p) for p in patterns)


@dataclass(frozen=True)
class PremiumPatternPolicy:
    """Pattern lists used by the validator. Replaceable policy data."""

    primary: Sequence[Pattern[str]] = field(
        default_factory=lambda: _compile(premium_patterns.PRIMARY_PREMIUM_PATTERNS)
    )
    extended: Sequence[Pattern[str]] = field(
        default_factory=lambda: _compile(premium_patterns.EXTENDED_PREMIUM_PATTERNS)
    )
    suspicious: Sequence[Pattern[str]] = field(
        default_factory=lambda: _compile(premium_patterns.SUSPICIOUS_SHAPE_PATTERNS)
    )
    control_characters: Sequence[str] = premium_patterns.CONTROL_CHARACTERS

    @classmethod
    def from_strings(
        cls,
        primary: Iterable[str],
        extended: Iterable[str],
        suspicious: Iterable[str],
        control_characters: Sequence[str] = premium_patterns.CONTROL_CHARACTERS,
    ) -> "PremiumPatternPolicy":
        return cls(
            primary=_compile(primary),
            extended=_compile(extended),
            suspicious=_compile(suspicious),
            control_characters=tuple(control_characters),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "PremiumPatternPolicy":
        """Load a JSON policy; missing keys fall back to the built-in tables."""
        with Path(path).open(encoding="utf-8") as fh:
            raw = json.load(fh)
        return cls.from_strings(
            primary=raw.get("primary", premium_patterns.PRIMARY_PREMIUM_PATTERNS),
            extended=raw.get("extended", premium_patterns.EXTENDED_PREMIUM_PATTERNS),
            suspicious=raw.get("suspicious", premium_patterns.SUSPICIOUS_SHAPE_PATTERNS),
            control_characters=raw.get(
                "control_characters", premium_patterns.CONTROL_CHARACTERS
            ),
        )


class SecurityValidator:
    """
    Pure three-layer classifier. No I/O, no state beyond the policy.

    Layer 1 and 2 matches are critical (premium destinations); layer 3 matches
    are high (implausible shapes or control codes). First match wins.
    """

    def __init__(self, policy: PremiumPatternPolicy | None = None) -> None:
        self._policy = policy or PremiumPatternPolicy()

    def validate(self, phone_number: str) -> SecurityVerdict:
        raw = phone_number or ""
        digits = _NON_DIGITS.sub("", raw)

        if self._matches(self._policy.primary, digits):
            return SecurityVerdict(
                allowed=False,
                risk_level=RiskLevel.CRITICAL,
                reason="Premium number detected - potential financial risk (Layer 1)",
            )
        if self._matches(self._policy.extended, digits):
            return SecurityVerdict(
                allowed=False,
                risk_level=RiskLevel.CRITICAL,
                reason="Premium number detected - extended protection (Layer 2)",
            )
        if (
            not digits
            or any(ch in raw for ch in self._policy.control_characters)
            or self._matches(self._policy.suspicious, digits)
        ):
            return SecurityVerdict(
                allowed=False,
                risk_level=RiskLevel.HIGH,
                reason="Suspicious number characteristics detected (Layer 3)",
            )
        return SecurityVerdict(allowed=True, risk_level=RiskLevel.LOW)

    @staticmethod
    def _matches(patterns: Sequence[Pattern[str]], digits: str) -> bool:
        return any(p.search(digits) for p in patterns)
