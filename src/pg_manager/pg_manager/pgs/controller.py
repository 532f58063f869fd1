from __future__ import annotations

from flask import Flask

from ..auth.guards import current_admin
from ..common.responses import ok, request_payload
from ..container import Container
from ..core.constants import API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    pgs = container.pg_service

    @app.route(f"{API_PREFIX}/pg", methods=["GET"], endpoint="pg_list")
    @guards.admin_required
    def pg_list():
        return ok(pgs.list_for_admin(current_admin()), "PGs retrieved")

    @app.route(f"{API_PREFIX}/pg", methods=["POST"], endpoint="pg_create")
    @guards.admin_required
    def pg_create():
        return ok(pgs.create(current_admin(), request_payload()).to_dict(), "PG created successfully", status=201)

    @app.route(f"{API_PREFIX}/pg/<int:pg_id>", methods=["GET"], endpoint="pg_get")
    @guards.admin_required
    def pg_get(pg_id: int):
        return ok(pgs.get_scoped(current_admin(), pg_id).to_dict(), "PG retrieved")

    @app.route(f"{API_PREFIX}/pg/<int:pg_id>", methods=["PUT"], endpoint="pg_update")
    @guards.admin_required
    def pg_update(pg_id: int):
        return ok(pgs.update(current_admin(), pg_id, request_payload()).to_dict(), "PG updated successfully")

    @app.route(f"{API_PREFIX}/pg/<int:pg_id>", methods=["DELETE"], endpoint="pg_delete")
    @guards.admin_required
    def pg_delete(pg_id: int):
        pgs.delete(current_admin(), pg_id)
        return ok(None, "PG deleted successfully")
