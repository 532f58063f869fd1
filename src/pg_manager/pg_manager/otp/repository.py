from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from ..core.enums import OtpType
from .model import Otp


class OtpRepository(Protocol):
    def create(
        self,
        *,
        member_id: int,
        code_hash: str,
        otp_type: OtpType,
        expires_at: datetime,
        tx: Any = None,
    ) -> int:
        raise NotImplementedError

    def discard_unused(self, *, member_id: int, otp_type: OtpType, tx: Any = None) -> int:
        raise NotImplementedError

    def latest_unused(self, *, member_id: int, otp_type: OtpType) -> Optional[Otp]:
        raise NotImplementedError

    def record_failure(self, otp_id: int) -> None:
        raise NotImplementedError

    def mark_used(self, otp_id: int, *, used_at: datetime) -> bool:
        raise NotImplementedError

    def purge_expired(self, now: datetime) -> int:
        raise NotImplementedError
