from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_admin
from ..common.pagination import PageRequest
from ..common.responses import ok, request_payload
from ..container import Container
from ..core.constants import API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    enquiries = container.enquiry_service

    @app.route(f"{API_PREFIX}/enquiries", methods=["POST"], endpoint="enquiry_create")
    def enquiry_create():
        enquiry = enquiries.create(request_payload())
        return ok(enquiry.to_dict(), "Enquiry submitted successfully. We will get back to you soon.", status=201)

    @app.route(f"{API_PREFIX}/enquiries", methods=["GET"], endpoint="enquiry_list")
    @guards.admin_required
    def enquiry_list():
        page = enquiries.list(request.args.to_dict(), page=PageRequest.from_args(request.args))
        return ok(page.items, "Enquiries retrieved", pagination=page.pagination())

    @app.route(f"{API_PREFIX}/enquiries/stats", methods=["GET"], endpoint="enquiry_stats")
    @guards.admin_required
    def enquiry_stats():
        return ok(enquiries.stats(), "Enquiry statistics retrieved")

    @app.route(f"{API_PREFIX}/enquiries/<int:enquiry_id>", methods=["GET"], endpoint="enquiry_get")
    @guards.admin_required
    def enquiry_get(enquiry_id: int):
        return ok(enquiries.get(enquiry_id).to_dict(), "Enquiry retrieved")

    @app.route(f"{API_PREFIX}/enquiries/<int:enquiry_id>/resolve", methods=["PATCH"], endpoint="enquiry_resolve")
    @guards.admin_required
    def enquiry_resolve(enquiry_id: int):
        enquiry = enquiries.set_status(current_admin(), enquiry_id, request_payload())
        label = enquiry.status.value.lower().replace("_", " ")
        return ok(enquiry.to_dict(), f"Enquiry status updated to {label}")

    @app.route(f"{API_PREFIX}/enquiries/<int:enquiry_id>", methods=["DELETE"], endpoint="enquiry_delete")
    @guards.admin_required
    def enquiry_delete(enquiry_id: int):
        enquiries.delete(enquiry_id)
        return ok(None, "Enquiry deleted successfully")
