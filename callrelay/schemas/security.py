from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from callrelay.constants.automation import RiskLevel


class SecurityVerdict(BaseModel):
    """Classification of a destination number."""

    allowed: bool
    risk_level: RiskLevel
    reason: Optional[str] = None
