from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..auth.guards import roles_required
from ..common.datetime_utils import to_iso
from ..common.responses import error_response
from ..core.enums import Role
from ..core.exceptions import NotFoundError, StoreError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _failure(what: str, exc: Exception):
        logger.exception("%s error", what)
        reason = exc.reason if isinstance(exc, StoreError) else "internal_error"
        return error_response("Internal server error", reason, 500)

    @app.route("/api/students/<int:student_id>/current-location", endpoint="api_student_current_location")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_student_current_location(student_id: int):
        try:
            status = container.presence_service.current_location(student_id)
        except NotFoundError as e:
            return error_response(str(e), e.reason, 404)
        except Exception as e:
            return _failure("current-location", e)

        loc = status.current_location
        return jsonify({
            "studentId": status.student_id,
            "status": status.state.value,
            "currentLocation": (
                {"id": loc.location_id, "name": loc.name, "code": loc.code} if loc else None
            ),
            "lastScanAt": to_iso(status.last_scan_at),
        })

    @app.route("/api/locations/<int:location_id>/occupants", endpoint="api_location_occupants")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_location_occupants(location_id: int):
        try:
            rows = container.presence_service.occupants(location_id)
        except NotFoundError as e:
            return error_response(str(e), e.reason, 404)
        except Exception as e:
            return _failure("occupants", e)

        occupants = [
            {
                "student_id": r.student_id,
                "full_name": r.full_name,
                "direction": r.direction.value,
                "scanned_at": to_iso(r.scanned_at),
            }
            for r in rows
        ]
        return jsonify({"locationId": location_id, "count": len(occupants), "occupants": occupants})

    @app.route("/api/schools/<int:school_id>/current-out", endpoint="api_school_current_out")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_school_current_out(school_id: int):
        try:
            rows = container.presence_service.students_currently_out(school_id)
        except Exception as e:
            return _failure("current-out", e)

        out_of_class = [
            {
                "student_id": r.student_id,
                "full_name": r.full_name,
                "location_name": r.location_name,
                "location_code": r.location_code,
                "direction": r.direction.value,
                "scanned_at": to_iso(r.scanned_at),
            }
            for r in rows
        ]
        return jsonify({"schoolId": school_id, "count": len(out_of_class), "outOfClass": out_of_class})
