from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_admin, current_member
from ..common.pagination import PageRequest
from ..common.responses import ok, request_payload
from ..container import Container
from ..core.constants import API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    payments = container.payment_service

    # -------- Member side --------
    @app.route(f"{API_PREFIX}/user/payments/upload", methods=["POST"], endpoint="payment_upload")
    @guards.member_required
    def payment_upload():
        payment = payments.upload(
            current_member(),
            request.form.to_dict(),
            rent_bill=request.files.get("rentBillScreenshot"),
            electricity_bill=request.files.get("electricityBillScreenshot"),
        )
        return ok(payment.to_dict(), "Payment submitted for approval", status=201)

    @app.route(f"{API_PREFIX}/user/payments/history", methods=["GET"], endpoint="payment_history")
    @guards.member_required
    def payment_history():
        page = payments.history(
            current_member(),
            page=PageRequest.from_args(request.args),
            year=request.args.get("year"),
            status=request.args.get("status"),
        )
        return ok(page.items, "Payment history retrieved", pagination=page.pagination())

    @app.route(f"{API_PREFIX}/user/payments/year/<int:year>", methods=["GET"], endpoint="payment_year")
    @guards.member_required
    def payment_year(year: int):
        return ok(payments.year_overview(current_member(), year), f"Payments for {year} retrieved")

    @app.route(f"{API_PREFIX}/user/payments/<int:month>/<int:year>", methods=["GET"], endpoint="payment_details")
    @guards.member_required
    def payment_details(month: int, year: int):
        return ok(payments.details(current_member(), month, year).to_dict(), "Payment details retrieved")

    # -------- Admin approvals --------
    @app.route(f"{API_PREFIX}/approvals/payments", methods=["GET"], endpoint="approval_payment_list")
    @guards.admin_required
    def approval_payment_list():
        page = payments.list_for_approval(
            current_admin(), request.args.to_dict(), page=PageRequest.from_args(request.args)
        )
        return ok(page.items, "Payments retrieved", pagination=page.pagination())

    @app.route(f"{API_PREFIX}/approvals/payments/<int:payment_id>", methods=["PUT"], endpoint="approval_payment")
    @guards.admin_required
    def approval_payment(payment_id: int):
        data = request_payload()
        payment = payments.decide(current_admin(), payment_id, data.get("approvalStatus") or data.get("status"))
        return ok(payment.to_dict(), f"Payment {payment.approval_status.value.lower()} successfully")
