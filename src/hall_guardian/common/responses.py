from __future__ import annotations

from flask import jsonify


def error_response(message: str, reason: str, status: int):
    return jsonify({"success": False, "error": message, "reason": reason}), status
