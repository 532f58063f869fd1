from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from werkzeug.datastructures import FileStorage

from ..auth.tokens import AdminIdentity
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.uploads import UploadStore
from ..common.validators import (
    optional_date,
    optional_enum,
    optional_int,
    require_amount,
    require_date,
    require_enum,
    require_int,
    require_length,
)
from ..core.constants import MAX_EXPENSE_BILLS
from ..core.enums import EntryType, PaymentMethod, PgType
from ..core.exceptions import NotFoundError, ValidationError
from ..pgs.service import PgService
from .model import Expense, ExpenseStats
from .repository import ExpenseFilter, ExpenseRepository, ExpenseStatsRepository
from .stats_calculator import ExpenseStatsCalculator

logger = logging.getLogger(__name__)

_SORT_FIELDS = {"date", "amount", "createdAt", "entryType", "partyName"}


class ExpenseService:
    def __init__(
        self,
        expenses: ExpenseRepository,
        stats: ExpenseStatsRepository,
        pg_service: PgService,
        *,
        uploads: Optional[UploadStore] = None,
        calculator: Optional[ExpenseStatsCalculator] = None,
    ):
        self._expenses = expenses
        self._stats = stats
        self._pgs = pg_service
        self._uploads = uploads
        self._calculator = calculator or ExpenseStatsCalculator(expenses, stats)

    # -------- Ledger --------
    def _validated(self, payload: dict) -> dict:
        remarks = (payload.get("remarks") or "").strip() or None
        if remarks and len(remarks) > 500:
            raise ValidationError("remarks must be at most 500 characters")
        return {
            "entry_type": require_enum(payload.get("entryType"), EntryType, "entryType"),
            "amount": require_amount(payload.get("amount"), "amount"),
            "entry_date": require_date(payload.get("date"), "date"),
            "party_name": require_length(payload.get("partyName"), "partyName", 2, 100),
            "payment_type": require_enum(payload.get("paymentType"), PaymentMethod, "paymentType"),
            "remarks": remarks,
        }

    def _save_bills(self, bills: Sequence[FileStorage]) -> list[Optional[str]]:
        files = [b for b in bills if b is not None and b.filename]
        if len(files) > MAX_EXPENSE_BILLS:
            raise ValidationError(f"At most {MAX_EXPENSE_BILLS} bills can be attached")
        if not self._uploads:
            return []
        return [self._uploads.save(f, "expenses") for f in files]

    def add(self, admin: AdminIdentity, payload: dict, *, bills: Sequence[FileStorage] = ()) -> Expense:
        fields = self._validated(payload)
        pg = self._pgs.get_scoped(admin, require_int(payload.get("pgId"), "pgId"))
        urls = self._save_bills(bills)

        expense_id = self._expenses.create(**fields, bills=urls, pg_id=pg.pg_id, created_by=admin.id)
        logger.info(
            "Admin %s recorded %s of %.2f in PG %s",
            admin.id,
            fields["entry_type"].value,
            fields["amount"],
            pg.pg_id,
        )
        return self.get(admin, expense_id)

    def get(self, admin: AdminIdentity, expense_id: int) -> Expense:
        expense = self._expenses.get_by_id(int(expense_id))
        if not expense or expense.pg_id not in self._pgs.scoped_ids(admin):
            raise NotFoundError("Expense not found")
        return expense

    def list(self, admin: AdminIdentity, args: dict, *, page: PageRequest) -> Page:
        pg_id = optional_int(args.get("pgId"), "pgId")
        pg_ids = [self._pgs.get_scoped(admin, pg_id).pg_id] if pg_id is not None else self._pgs.scoped_ids(admin)

        sort_by = args.get("sortBy") or "date"
        if sort_by not in _SORT_FIELDS:
            raise ValidationError(f"sortBy must be one of: {', '.join(sorted(_SORT_FIELDS))}")
        sort_order = (args.get("sortOrder") or "desc").lower()
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sortOrder must be asc or desc")

        start = optional_date(args.get("startDate"), "startDate")
        end = optional_date(args.get("endDate"), "endDate")
        if start and end and start > end:
            raise ValidationError("startDate must be on or before endDate")

        flt = ExpenseFilter(
            pg_ids=pg_ids,
            entry_type=optional_enum(args.get("entryType"), EntryType, "entryType"),
            payment_type=optional_enum(args.get("paymentType"), PaymentMethod, "paymentType"),
            start_date=start,
            end_date=end,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        items, total = self._expenses.list(flt, offset=page.offset, limit=page.limit)
        return Page(items=[e.to_dict() for e in items], total=total, request=page)

    def update(
        self,
        admin: AdminIdentity,
        expense_id: int,
        payload: dict,
        *,
        bills: Sequence[FileStorage] = (),
    ) -> Expense:
        current = self.get(admin, expense_id)
        merged = {
            "entryType": current.entry_type.value,
            "amount": current.amount,
            "date": current.entry_date,
            "partyName": current.party_name,
            "paymentType": current.payment_type.value,
            "remarks": current.remarks,
            "pgId": current.pg_id,
        }
        merged.update({k: v for k, v in payload.items() if v is not None})
        fields = self._validated(merged)

        pg_id = require_int(merged.get("pgId"), "pgId")
        if pg_id != current.pg_id:
            pg_id = self._pgs.get_scoped(admin, pg_id).pg_id

        urls: Sequence[Optional[str]] = current.bills
        new_urls = self._save_bills(bills)
        if new_urls:
            if self._uploads:
                self._uploads.delete_all(current.bills)
            urls = new_urls

        self._expenses.update(expense_id=current.expense_id, **fields, bills=urls, pg_id=pg_id)
        return self.get(admin, current.expense_id)

    def delete(self, admin: AdminIdentity, expense_id: int) -> None:
        expense = self.get(admin, expense_id)
        self._expenses.delete(expense.expense_id)
        if self._uploads:
            self._uploads.delete_all(expense.bills)
        logger.info("Admin %s deleted expense %s", admin.id, expense.expense_id)

    # -------- Stats --------
    def stats(
        self,
        admin: AdminIdentity,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ExpenseStats:
        now = now or now_local()
        month = month or now.month
        year = year or now.year
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")

        is_current = (month, year) == (now.month, now.year)
        if not is_current:
            cached = self._stats.get(pg_type=admin.pg_type, month=month, year=year)
            if cached:
                return cached
        return self._calculator.calculate(pg_type=admin.pg_type, month=month, year=year, now=now)

    def summary(self, admin: AdminIdentity, *, year: Optional[int] = None, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        year = year or now.year
        months = list(self._stats.list_for_year(pg_type=admin.pg_type, year=year))

        total_in = round(sum(s.totals.cash_in_amount for s in months), 2)
        total_out = round(sum(s.totals.cash_out_amount for s in months), 2)
        best = max(months, key=lambda s: s.totals.net_amount, default=None)
        worst = min(months, key=lambda s: s.totals.net_amount, default=None)

        return {
            "year": year,
            "pgType": admin.pg_type.value,
            "months": [s.to_dict() for s in months],
            "totals": {
                "cashIn": total_in,
                "cashOut": total_out,
                "net": round(total_in - total_out, 2),
            },
            "bestMonth": {"month": best.month, "net": best.totals.net_amount} if best else None,
            "worstMonth": {"month": worst.month, "net": worst.totals.net_amount} if worst else None,
            "growthMonths": sum(1 for s in months if s.net_percent_change > 0),
            "declineMonths": sum(1 for s in months if s.net_percent_change < 0),
        }

    def recompute_month(self, *, month: int, year: int, now: Optional[datetime] = None) -> list[ExpenseStats]:
        now = now or now_local()
        out = [self._calculator.calculate(pg_type=t, month=month, year=year, now=now) for t in PgType]
        logger.info("Expense stats recomputed for %02d/%s", month, year)
        return out
