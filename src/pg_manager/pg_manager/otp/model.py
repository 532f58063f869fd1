from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import OtpType


@dataclass(frozen=True)
class Otp:
    otp_id: int
    member_id: int
    code_hash: str
    otp_type: OtpType
    expires_at: datetime
    attempts: int = 0
    used: bool = False
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
