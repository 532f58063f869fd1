from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_admin, current_member
from ..common.pagination import PageRequest
from ..common.responses import ok, request_payload, send_download
from ..container import Container
from ..core.constants import API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    # -------- Registration (public) --------
    @app.route(f"{API_PREFIX}/register/validate", methods=["POST"], endpoint="register_validate")
    def register_validate():
        return ok(container.registration_service.validate(request_payload()), "Registration details are valid")

    @app.route(f"{API_PREFIX}/register", methods=["POST"], endpoint="register_member")
    def register_member():
        created = container.registration_service.register(
            request.form.to_dict(),
            profile_image=request.files.get("profileImage"),
            document_image=request.files.get("documentImage"),
        )
        return ok(created.to_dict(), "Registration submitted successfully", status=201)

    # -------- Member approvals --------
    @app.route(f"{API_PREFIX}/approvals/members", methods=["GET"], endpoint="approval_member_list")
    @guards.admin_required
    def approval_member_list():
        page = container.approval_service.list_registrations(
            current_admin(),
            page=PageRequest.from_args(request.args),
            search=request.args.get("search"),
            rent_type=request.args.get("rentType"),
        )
        return ok(page.items, "Registrations retrieved", pagination=page.pagination())

    @app.route(f"{API_PREFIX}/approvals/members/<int:registration_id>", methods=["PUT"], endpoint="approval_member")
    @guards.admin_required
    def approval_member(registration_id: int):
        member = container.approval_service.decide(current_admin(), registration_id, request_payload())
        if member is None:
            return ok(None, "Registration rejected")
        return ok(member.to_dict(), "Member approved successfully")

    @app.route(f"{API_PREFIX}/approvals/stats", methods=["GET"], endpoint="approval_stats")
    @guards.admin_required
    def approval_stats():
        return ok(container.approval_service.approval_stats(current_admin()), "Approval statistics retrieved")

    # -------- Admin member directory --------
    @app.route(f"{API_PREFIX}/members", methods=["GET"], endpoint="member_list")
    @guards.admin_required
    def member_list():
        page = container.member_service.list_members(
            current_admin(), request.args.to_dict(), page=PageRequest.from_args(request.args)
        )
        return ok(page.items, "Members retrieved", pagination=page.pagination())

    @app.route(f"{API_PREFIX}/members/filters", methods=["GET"], endpoint="member_filters")
    @guards.admin_required
    def member_filters():
        return ok(container.member_service.get_filters(current_admin()), "Filters retrieved")

    @app.route(f"{API_PREFIX}/members/<int:member_pk>", methods=["GET"], endpoint="member_get")
    @guards.admin_required
    def member_get(member_pk: int):
        return ok(container.member_service.get_member(current_admin(), member_pk), "Member retrieved")

    @app.route(f"{API_PREFIX}/members/<int:member_pk>/report", methods=["GET"], endpoint="member_report")
    @guards.admin_required
    def member_report(member_pk: int):
        filename, buf = container.member_report_service.build(current_admin(), member_pk)
        return send_download(buf, filename=filename, mimetype="application/zip")

    # -------- Member self-service --------
    @app.route(f"{API_PREFIX}/user/login", methods=["POST"], endpoint="user_login")
    def user_login():
        data = request_payload()
        result = container.account_service.login(data.get("email", ""), data.get("password", ""))
        if result["isFirstTimeLogin"]:
            return ok(result, "Please set up your password")
        return ok(result, "Login successful")

    @app.route(f"{API_PREFIX}/user/otp-verify", methods=["POST"], endpoint="user_otp_verify")
    def user_otp_verify():
        return ok(container.account_service.verify_setup_otp(request_payload()), "OTP verified, please set your password")

    @app.route(f"{API_PREFIX}/user/setup-password", methods=["POST"], endpoint="user_setup_password")
    @guards.setup_required
    def user_setup_password():
        return ok(
            container.account_service.setup_password(current_member(), request_payload()),
            "Password set successfully",
        )

    @app.route(f"{API_PREFIX}/user/request-otp", methods=["POST"], endpoint="user_request_otp")
    def user_request_otp():
        container.account_service.request_setup_otp(request_payload().get("email", ""))
        return ok(None, "If the account is awaiting setup, a new OTP has been sent to its email")

    @app.route(f"{API_PREFIX}/user/request-password-reset", methods=["POST"], endpoint="user_request_password_reset")
    def user_request_password_reset():
        container.account_service.request_password_reset(request_payload().get("email", ""))
        return ok(None, "If the account exists, a password reset OTP has been sent to its email")

    @app.route(f"{API_PREFIX}/user/reset-password", methods=["POST"], endpoint="user_reset_password")
    def user_reset_password():
        container.account_service.reset_password(request_payload())
        return ok(None, "Password reset successfully, please log in")

    @app.route(f"{API_PREFIX}/user/change-password", methods=["POST"], endpoint="user_change_password")
    @guards.member_required
    def user_change_password():
        container.account_service.change_password(current_member(), request_payload())
        return ok(None, "Password changed successfully")

    @app.route(f"{API_PREFIX}/user/profile", methods=["GET"], endpoint="user_profile")
    @guards.member_required
    def user_profile():
        return ok(container.account_service.get_profile(current_member()), "Profile retrieved")

    @app.route(f"{API_PREFIX}/user/profile", methods=["PUT"], endpoint="user_profile_update")
    @guards.member_required
    def user_profile_update():
        return ok(
            container.account_service.update_profile(current_member(), request_payload()),
            "Profile updated successfully",
        )

    @app.route(f"{API_PREFIX}/user/current-month-overview", methods=["GET"], endpoint="user_month_overview")
    @guards.member_required
    def user_month_overview():
        return ok(container.account_service.current_month_overview(current_member()), "Current month overview")
