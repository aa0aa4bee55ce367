from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import to_iso, utc_now
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/health", endpoint="api_health")
    def api_health():
        return jsonify({"ok": True, "time": to_iso(utc_now())})
