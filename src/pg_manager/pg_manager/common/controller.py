from __future__ import annotations

from flask import Flask, send_from_directory

from ..container import Container
from .datetime_utils import now_local
from .responses import ok
from .uploads import URL_PREFIX


def register(app: Flask, container: Container) -> None:
    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return ok({"timestamp": now_local()}, "OK")

    @app.route(f"{URL_PREFIX}/<path:filename>", methods=["GET"], endpoint="uploaded_file")
    def uploaded_file(filename: str):
        return send_from_directory(container.uploads.root.resolve(), filename)
