from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_admin
from ..common.pagination import PageRequest
from ..common.responses import ok, request_payload
from ..common.validators import optional_int
from ..container import Container
from ..core.constants import API_PREFIX, MAX_EXPENSE_BILLS


def _bills():
    files = request.files.getlist("bills")
    for i in range(1, MAX_EXPENSE_BILLS + 1):
        f = request.files.get(f"attachedBill{i}")
        if f is not None:
            files.append(f)
    return files


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    expenses = container.expense_service

    @app.route(f"{API_PREFIX}/expenses", methods=["GET"], endpoint="expense_list")
    @guards.admin_required
    def expense_list():
        page = expenses.list(current_admin(), request.args.to_dict(), page=PageRequest.from_args(request.args))
        return ok(page.items, "Expenses retrieved", pagination=page.pagination())

    @app.route(f"{API_PREFIX}/expenses", methods=["POST"], endpoint="expense_create")
    @guards.admin_required
    def expense_create():
        expense = expenses.add(current_admin(), request_payload(), bills=_bills())
        return ok(expense.to_dict(), "Expense added successfully", status=201)

    @app.route(f"{API_PREFIX}/expenses/stats", methods=["GET"], endpoint="expense_stats")
    @guards.admin_required
    def expense_stats():
        stats = expenses.stats(
            current_admin(),
            month=optional_int(request.args.get("month"), "month", min_value=1, max_value=12),
            year=optional_int(request.args.get("year"), "year", min_value=2000),
        )
        return ok(stats.to_dict(), "Expense statistics retrieved")

    @app.route(f"{API_PREFIX}/expenses/summary", methods=["GET"], endpoint="expense_summary")
    @guards.admin_required
    def expense_summary():
        year = optional_int(request.args.get("year"), "year", min_value=2000)
        return ok(expenses.summary(current_admin(), year=year), "Expense summary retrieved")

    @app.route(f"{API_PREFIX}/expenses/<int:expense_id>", methods=["GET"], endpoint="expense_get")
    @guards.admin_required
    def expense_get(expense_id: int):
        return ok(expenses.get(current_admin(), expense_id).to_dict(), "Expense retrieved")

    @app.route(f"{API_PREFIX}/expenses/<int:expense_id>", methods=["PUT"], endpoint="expense_update")
    @guards.admin_required
    def expense_update(expense_id: int):
        expense = expenses.update(current_admin(), expense_id, request_payload(), bills=_bills())
        return ok(expense.to_dict(), "Expense updated successfully")

    @app.route(f"{API_PREFIX}/expenses/<int:expense_id>", methods=["DELETE"], endpoint="expense_delete")
    @guards.admin_required
    def expense_delete(expense_id: int):
        expenses.delete(current_admin(), expense_id)
        return ok(None, "Expense deleted successfully")
