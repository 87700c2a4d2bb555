from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class OutboundSms(BaseModel):
    phone_number: str
    text: str
    call_id: Optional[str] = None
