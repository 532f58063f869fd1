from __future__ import annotations

from flask import Flask

from ..auth.guards import current_admin
from ..common.responses import ok
from ..container import Container
from ..core.constants import API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route(f"{API_PREFIX}/dashboard/stats", methods=["GET"], endpoint="dashboard_stats")
    @guards.admin_required
    def dashboard_stats():
        return ok(container.dashboard_service.stats(current_admin()), "Dashboard statistics retrieved")

    @app.route(f"{API_PREFIX}/dashboard/stats/refresh", methods=["POST"], endpoint="dashboard_refresh")
    @guards.admin_required
    def dashboard_refresh():
        return ok(container.dashboard_service.refresh(current_admin()), "Dashboard statistics recalculated")
