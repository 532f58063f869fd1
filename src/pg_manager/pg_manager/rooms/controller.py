from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_admin
from ..common.responses import ok, request_payload
from ..common.validators import optional_int
from ..container import Container
from ..core.constants import API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    rooms = container.room_service

    @app.route(f"{API_PREFIX}/rooms", methods=["GET"], endpoint="room_list")
    @guards.admin_required
    def room_list():
        pg_id = optional_int(request.args.get("pgId"), "pgId")
        items = rooms.list_for_admin(current_admin(), pg_id=pg_id)
        return ok([r.to_dict() for r in items], "Rooms retrieved")

    @app.route(f"{API_PREFIX}/rooms/occupancy-stats", methods=["GET"], endpoint="room_occupancy")
    @guards.admin_required
    def room_occupancy():
        pg_id = optional_int(request.args.get("pgId"), "pgId")
        return ok(rooms.occupancy_stats(current_admin(), pg_id=pg_id), "Occupancy statistics retrieved")

    @app.route(f"{API_PREFIX}/rooms", methods=["POST"], endpoint="room_create")
    @guards.admin_required
    def room_create():
        room = rooms.create(current_admin(), request_payload())
        return ok(room.to_dict(), "Room created successfully", status=201)

    @app.route(f"{API_PREFIX}/rooms/<int:room_id>", methods=["GET"], endpoint="room_get")
    @guards.admin_required
    def room_get(room_id: int):
        return ok(rooms.get_scoped(current_admin(), room_id).to_dict(), "Room retrieved")

    @app.route(f"{API_PREFIX}/rooms/<int:room_id>", methods=["PUT"], endpoint="room_update")
    @guards.admin_required
    def room_update(room_id: int):
        room = rooms.update(current_admin(), room_id, request_payload())
        return ok(room.to_dict(), "Room updated successfully")

    @app.route(f"{API_PREFIX}/rooms/<int:room_id>", methods=["DELETE"], endpoint="room_delete")
    @guards.admin_required
    def room_delete(room_id: int):
        rooms.delete(current_admin(), room_id)
        return ok(None, "Room deleted successfully")
