from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import PgType
from .periods import ReportPeriod

TABLE_KEYS = ("pgPerformance", "roomUtilization", "paymentAnalytics", "financialSummary")


@dataclass(frozen=True)
class PeriodFigures:
    new_members: int = 0
    member_departures: int = 0
    rent_collected: float = 0.0
    total_expenses: float = 0.0

    @property
    def net_profit(self) -> float:
        return round(self.rent_collected - self.total_expenses, 2)


@dataclass(frozen=True)
class ReportCards:
    figures: PeriodFigures
    new_members_trend: float = 0.0
    member_departures_trend: float = 0.0
    rent_collected_trend: float = 0.0
    total_expenses_trend: float = 0.0
    net_profit_trend: float = 0.0

    def to_list(self) -> list[dict]:
        f = self.figures
        rows = (
            ("newMembers", "New Members", f.new_members, self.new_members_trend, "userPlus"),
            ("memberDepartures", "Member Departures", f.member_departures, self.member_departures_trend, "userMinus"),
            ("rentCollected", "Rent Collected", f.rent_collected, self.rent_collected_trend, "indianRupee"),
            ("totalExpenses", "Total Expenses", f.total_expenses, self.total_expenses_trend, "receipt"),
            ("netProfit", "Net Profit", f.net_profit, self.net_profit_trend, "trendingUp"),
        )
        return [
            {
                "key": key,
                "title": title,
                "value": value,
                "trend": "up" if trend >= 0 else "down",
                "percentage": abs(trend),
                "icon": icon,
            }
            for key, title, value, trend, icon in rows
        ]


@dataclass(frozen=True)
class Report:
    pg_type: PgType
    period: ReportPeriod
    cards: ReportCards
    tables: dict = field(default_factory=dict)
    calculated_at: Optional[datetime] = None
    cached: bool = False

    def cards_dict(self) -> dict:
        return {
            "pgType": self.pg_type.value,
            "period": self.period.to_dict(),
            "cards": self.cards.to_list(),
            "cached": self.cached,
            "calculatedAt": self.calculated_at,
        }

    def tables_dict(self) -> dict:
        out = {
            "pgType": self.pg_type.value,
            "period": self.period.to_dict(),
            "cached": self.cached,
            "calculatedAt": self.calculated_at,
        }
        out.update({k: self.tables.get(k, []) for k in TABLE_KEYS})
        return out
