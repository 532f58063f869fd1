from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_admin, current_member
from ..common.pagination import PageRequest
from ..common.responses import ok, request_payload
from ..container import Container
from ..core.constants import API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    leaving = container.leaving_service

    @app.route(f"{API_PREFIX}/leaving-requests/apply", methods=["POST"], endpoint="leaving_apply")
    @guards.member_required
    def leaving_apply():
        req = leaving.apply(current_member(), request_payload())
        return ok(req.to_dict(), "Leaving request submitted successfully", status=201)

    @app.route(f"{API_PREFIX}/leaving-requests/status", methods=["GET"], endpoint="leaving_status")
    @guards.member_required
    def leaving_status():
        return ok([r.to_dict() for r in leaving.status(current_member())], "Leaving requests retrieved")

    @app.route(f"{API_PREFIX}/leaving-requests", methods=["GET"], endpoint="leaving_list")
    @guards.admin_required
    def leaving_list():
        page = leaving.list_for_admin(current_admin(), request.args.to_dict(), page=PageRequest.from_args(request.args))
        return ok(page.items, "Leaving requests retrieved", pagination=page.pagination())

    @app.route(
        f"{API_PREFIX}/leaving-requests/<int:request_id>/approve-reject",
        methods=["PATCH"],
        endpoint="leaving_decide",
    )
    @guards.admin_required
    def leaving_decide(request_id: int):
        req = leaving.decide(current_admin(), request_id, request_payload())
        return ok(req.to_dict(), f"Leaving request {req.status.value.lower()} successfully")

    @app.route(f"{API_PREFIX}/leaving-requests/<int:request_id>/complete", methods=["PATCH"], endpoint="leaving_complete")
    @guards.admin_required
    def leaving_complete(request_id: int):
        req = leaving.complete(
            current_admin(),
            request_id,
            request_payload(),
            settlement_proof=request.files.get("settlementProof"),
        )
        return ok(req.to_dict(), "Leaving request completed and member deactivated")
