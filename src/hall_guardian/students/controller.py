from __future__ import annotations

import logging

from flask import Flask

from ..auth.guards import roles_required
from ..common.qr_codes import render_qr_png
from ..common.responses import error_response
from ..core.enums import Role
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students/<int:student_id>/qr.png", endpoint="api_student_qr_badge")
    @roles_required(Role.ADMIN)
    def api_student_qr_badge(student_id: int):
        """Render the student's QR credential as a printable PNG badge."""
        try:
            student = container.directory.get_student(student_id)
        except Exception:
            logger.exception("qr badge lookup error")
            return error_response("Internal server error", "internal_error", 500)

        if not student:
            return error_response("Student not found", "student_not_found", 404)
        if not student.qr_value:
            return error_response("Student has no QR credential", "qr_not_assigned", 404)

        return app.response_class(
            render_qr_png(student.qr_value),
            mimetype="image/png",
            headers={"Content-Disposition": f"inline; filename=student_{student.student_id}_qr.png"},
        )
