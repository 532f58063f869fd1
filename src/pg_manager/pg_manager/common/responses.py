from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from flask import Flask, jsonify, request, send_file
from flask.json.provider import DefaultJSONProvider
from werkzeug.exceptions import HTTPException

from ..core.exceptions import ConflictError, DomainError, ValidationError

logger = logging.getLogger(__name__)


class ApiJSONProvider(DefaultJSONProvider):
    """Serialize dates as ISO strings and decimals as numbers."""

    @staticmethod
    def default(o: Any) -> Any:
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, date):
            return o.isoformat()
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, Enum):
            return o.value
        return DefaultJSONProvider.default(o)


def ok(data: Any = None, message: str = "", *, status: int = 200, pagination: Optional[dict] = None):
    body: dict = {"success": True, "message": message, "data": data}
    if pagination is not None:
        body["pagination"] = pagination
    return jsonify(body), status


def fail(message: str, status: int, **extra: Any):
    body: dict = {"success": False, "message": message}
    body.update({k: v for k, v in extra.items() if v})
    return jsonify(body), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        extra: dict = {}
        if isinstance(e, ValidationError):
            extra["errors"] = e.errors
        if isinstance(e, ConflictError):
            extra["field"] = e.field
        return fail(str(e), e.status_code, **extra)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return fail(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error: %s", e)
        return fail("Internal server error", 500)


def request_payload() -> dict:
    """JSON body, or the form fields of a multipart request."""
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        return body
    return request.form.to_dict()


def send_download(buf, *, filename: str, mimetype: str):
    return send_file(buf, download_name=filename, as_attachment=True, mimetype=mimetype)
