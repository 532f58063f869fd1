from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_admin
from ..common.responses import ok, send_download
from ..container import Container
from ..core.constants import API_PREFIX

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    reports = container.report_service

    @app.route(f"{API_PREFIX}/reports/cards/<report_type>", methods=["GET"], endpoint="report_cards")
    @guards.admin_required
    def report_cards(report_type: str):
        return ok(reports.cards(current_admin(), report_type, request.args.to_dict()), "Report cards retrieved")

    @app.route(f"{API_PREFIX}/reports/tables/<report_type>", methods=["GET"], endpoint="report_tables")
    @guards.admin_required
    def report_tables(report_type: str):
        return ok(reports.tables(current_admin(), report_type, request.args.to_dict()), "Report tables retrieved")

    @app.route(f"{API_PREFIX}/reports/download/<report_type>", methods=["GET"], endpoint="report_download")
    @guards.admin_required
    def report_download(report_type: str):
        filename, buf = reports.download(current_admin(), report_type, request.args.to_dict())
        return send_download(buf, filename=filename, mimetype=XLSX_MIMETYPE)
