from __future__ import annotations

from dataclasses import replace
from datetime import date
from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from src.pg_manager.pg_manager.auth.tokens import AdminIdentity
from src.pg_manager.pg_manager.common.pagination import PageRequest
from src.pg_manager.pg_manager.common.uploads import UploadStore
from src.pg_manager.pg_manager.core.enums import EntryType, PaymentMethod, PgType
from src.pg_manager.pg_manager.core.exceptions import NotFoundError, ValidationError
from src.pg_manager.pg_manager.expenses.model import Expense
from src.pg_manager.pg_manager.expenses.service import ExpenseService
from src.pg_manager.pg_manager.pgs.model import PG
from src.pg_manager.pg_manager.pgs.service import PgService


ADMIN = AdminIdentity(id=1, email="admin@pg.local", name="Admin", pg_type=PgType.MENS)


class FakePgRepo:
    def __init__(self):
        self._pgs = {
            3: PG(pg_id=3, name="Sunrise", pg_type=PgType.MENS, location="Velachery"),
            4: PG(pg_id=4, name="Lotus", pg_type=PgType.WOMENS, location="Adyar"),
        }

    def get_by_id(self, pg_id):
        return self._pgs.get(int(pg_id))

    def list_by_type(self, pg_type):
        return [p for p in self._pgs.values() if p.pg_type == pg_type]


class FakeExpensesRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Expense] = {}
        self.last_filter = None

    def get_by_id(self, expense_id):
        return self.rows.get(int(expense_id))

    def create(self, *, entry_type, amount, entry_date, party_name, payment_type, remarks, bills, pg_id, created_by):
        eid = self._next_id
        self._next_id += 1
        padded = tuple(list(bills) + [None] * (3 - len(bills)))
        self.rows[eid] = Expense(
            expense_id=eid,
            entry_type=entry_type,
            amount=amount,
            entry_date=entry_date,
            party_name=party_name,
            payment_type=payment_type,
            pg_id=pg_id,
            created_by=created_by,
            remarks=remarks,
            bills=padded,
        )
        return eid

    def update(self, *, expense_id, entry_type, amount, entry_date, party_name, payment_type, remarks, bills, pg_id):
        padded = tuple(list(bills) + [None] * (3 - len(bills)))
        self.rows[expense_id] = replace(
            self.rows[expense_id],
            entry_type=entry_type,
            amount=amount,
            entry_date=entry_date,
            party_name=party_name,
            payment_type=payment_type,
            remarks=remarks,
            bills=padded,
            pg_id=pg_id,
        )
        return True

    def delete(self, expense_id):
        return self.rows.pop(int(expense_id), None) is not None

    def list(self, flt, *, offset, limit):
        self.last_filter = flt
        items = [e for e in self.rows.values() if e.pg_id in flt.pg_ids]
        return items[offset : offset + limit], len(items)


def _bill(name="bill.jpg") -> FileStorage:
    return FileStorage(stream=BytesIO(b"receipt"), filename=name)


def _build(tmp_path):
    expenses = FakeExpensesRepo()
    uploads = UploadStore(tmp_path)
    svc = ExpenseService(expenses, stats=None, pg_service=PgService(FakePgRepo()), uploads=uploads)
    return svc, expenses, uploads


PAYLOAD = {
    "entryType": "CASH_OUT",
    "amount": "1250.50",
    "date": "2026-06-03",
    "partyName": "City Electricals",
    "paymentType": "ONLINE",
    "remarks": "Fan repair",
    "pgId": 3,
}


def test_add_stores_bills_under_expenses_folder(tmp_path):
    svc, _, uploads = _build(tmp_path)

    expense = svc.add(ADMIN, PAYLOAD, bills=[_bill("a.jpg"), _bill("b.pdf")])

    assert expense.entry_type == EntryType.CASH_OUT
    assert expense.amount == 1250.5
    assert expense.entry_date == date(2026, 6, 3)
    assert expense.created_by == ADMIN.id
    assert expense.bills[0].startswith("/uploads/expenses/")
    assert expense.bills[2] is None
    assert uploads.path_for(expense.bills[1]).exists()


def test_add_validates_fields_and_bill_limit(tmp_path):
    svc, expenses, _ = _build(tmp_path)

    with pytest.raises(ValidationError):
        svc.add(ADMIN, dict(PAYLOAD, partyName="X"))
    with pytest.raises(ValidationError):
        svc.add(ADMIN, dict(PAYLOAD, remarks="r" * 501))
    with pytest.raises(ValidationError):
        svc.add(ADMIN, dict(PAYLOAD, amount="0"))
    with pytest.raises(ValidationError):
        svc.add(ADMIN, PAYLOAD, bills=[_bill() for _ in range(4)])
    with pytest.raises(NotFoundError):
        svc.add(ADMIN, dict(PAYLOAD, pgId=4))
    assert expenses.rows == {}


def test_update_replaces_bills_and_removes_old_files(tmp_path):
    svc, _, uploads = _build(tmp_path)
    expense = svc.add(ADMIN, PAYLOAD, bills=[_bill("old.jpg")])
    old_path = uploads.path_for(expense.bills[0])

    updated = svc.update(ADMIN, expense.expense_id, {"amount": 900}, bills=[_bill("new.png")])

    assert updated.amount == 900.0
    assert updated.party_name == "City Electricals"
    assert not old_path.exists()
    assert updated.bills[0] != expense.bills[0]


def test_update_without_new_bills_keeps_existing(tmp_path):
    svc, _, _ = _build(tmp_path)
    expense = svc.add(ADMIN, PAYLOAD, bills=[_bill()])

    updated = svc.update(ADMIN, expense.expense_id, {"remarks": "Fan and switch repair"})

    assert updated.bills == expense.bills
    assert updated.remarks == "Fan and switch repair"


def test_delete_removes_row_and_files(tmp_path):
    svc, expenses, uploads = _build(tmp_path)
    expense = svc.add(ADMIN, PAYLOAD, bills=[_bill()])
    path = uploads.path_for(expense.bills[0])

    svc.delete(ADMIN, expense.expense_id)

    assert expenses.rows == {}
    assert not path.exists()


def test_expense_of_other_pg_type_is_invisible(tmp_path):
    svc, expenses, _ = _build(tmp_path)
    eid = expenses.create(
        entry_type=EntryType.CASH_IN,
        amount=100.0,
        entry_date=date(2026, 6, 1),
        party_name="Someone",
        payment_type=PaymentMethod.CASH,
        remarks=None,
        bills=[],
        pg_id=4,
        created_by=2,
    )

    with pytest.raises(NotFoundError):
        svc.get(ADMIN, eid)


def test_list_validates_sorting_and_date_range(tmp_path):
    svc, expenses, _ = _build(tmp_path)
    page = PageRequest(page=1, limit=10)

    with pytest.raises(ValidationError):
        svc.list(ADMIN, {"sortBy": "remarks"}, page=page)
    with pytest.raises(ValidationError):
        svc.list(ADMIN, {"sortOrder": "sideways"}, page=page)
    with pytest.raises(ValidationError):
        svc.list(ADMIN, {"startDate": "2026-06-10", "endDate": "2026-06-01"}, page=page)

    svc.list(ADMIN, {"entryType": "CASH_IN", "sortBy": "amount", "sortOrder": "ASC"}, page=page)
    assert expenses.last_filter.pg_ids == [3]
    assert expenses.last_filter.entry_type == EntryType.CASH_IN
    assert expenses.last_filter.sort_order == "asc"
