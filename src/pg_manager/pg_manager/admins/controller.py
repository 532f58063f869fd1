from __future__ import annotations

from flask import Flask

from ..auth.guards import current_admin
from ..common.responses import ok, request_payload
from ..container import Container
from ..core.constants import API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route(f"{API_PREFIX}/admin/login", methods=["POST"], endpoint="admin_login")
    def admin_login():
        data = request_payload()
        s_admin = container.admin_service.login(data.get("email", ""), data.get("password", ""))
        return ok({"token": s_admin.token, "admin": s_admin.admin.to_dict()}, "Login successful")

    @app.route(f"{API_PREFIX}/admin/create", methods=["POST"], endpoint="admin_create")
    def admin_create():
        admin = container.admin_service.create_admin(request_payload())
        return ok(admin.to_dict(), "Admin created successfully", status=201)

    @app.route(f"{API_PREFIX}/admin/profile", methods=["GET"], endpoint="admin_profile")
    @guards.admin_required
    def admin_profile():
        return ok(container.admin_service.get_profile(current_admin().id).to_dict(), "Profile retrieved")

    @app.route(f"{API_PREFIX}/admin/profile", methods=["PUT"], endpoint="admin_profile_update")
    @guards.admin_required
    def admin_profile_update():
        admin = container.admin_service.update_profile(current_admin(), request_payload())
        return ok(admin.to_dict(), "Profile updated successfully")

    @app.route(f"{API_PREFIX}/admin/pgs", methods=["GET"], endpoint="admin_pgs")
    @guards.admin_required
    def admin_pgs():
        return ok(container.pg_service.list_for_admin(current_admin()), "PGs retrieved")

    @app.route(
        f"{API_PREFIX}/admin/payment-records/update-overdue",
        methods=["POST"],
        endpoint="admin_update_overdue",
    )
    @guards.admin_required
    def admin_update_overdue():
        updated = container.payment_service.sweep_overdue()
        return ok({"updatedCount": updated}, f"{updated} payments marked overdue")

    @app.route(f"{API_PREFIX}/admin/members/cleanup-inactive", methods=["POST"], endpoint="admin_cleanup_members")
    @guards.admin_required
    def admin_cleanup_members():
        removed = container.member_service.cleanup_inactive()
        return ok({"deletedCount": removed}, f"{removed} inactive members removed")

    @app.route(f"{API_PREFIX}/admin/leaving-requests/update-dues", methods=["POST"], endpoint="admin_update_dues")
    @guards.admin_required
    def admin_update_dues():
        updated = container.leaving_service.refresh_pending_dues()
        return ok({"updatedCount": updated}, f"Pending dues refreshed on {updated} requests")
