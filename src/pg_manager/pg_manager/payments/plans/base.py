from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...members.model import Member
from ..model import NewPayment, Payment


class RentPlan(ABC):
    """Strategy Pattern: how a rent type bills a member."""

    @abstractmethod
    def first_payment(self, *, member: Member, room_rent: float, approved_by: int, now: datetime) -> NewPayment:
        raise NotImplementedError

    @abstractmethod
    def successor(self, *, member: Member, approved: Payment, room_rent: float) -> Optional[NewPayment]:
        """Row for the next service month once ``approved`` is approved, if the plan bills monthly."""

        raise NotImplementedError
