from __future__ import annotations

from dataclasses import dataclass

from ...core.enums import RentType
from .base import RentPlan
from .long_term import LongTermPlan
from .short_term import ShortTermPlan


@dataclass
class RentPlanFactory:
    """Factory Pattern: choose the billing strategy for a rent type."""

    def for_rent_type(self, rent_type: RentType) -> RentPlan:
        if rent_type == RentType.SHORT_TERM:
            return ShortTermPlan()
        return LongTermPlan()
