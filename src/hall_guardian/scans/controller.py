from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..auth.guards import roles_required
from ..common.qr_codes import decode_qr_image
from ..common.responses import error_response
from ..core.enums import Role, ScanSource
from ..core.exceptions import NotFoundError, StoreError, ValidationError
from ..container import Container
from .model import ScanResult

logger = logging.getLogger(__name__)


def scan_result_payload(result: ScanResult) -> dict:
    return {
        "success": True,
        "eventId": result.event.event_id,
        "student": {
            "id": result.student.student_id,
            "name": result.student.full_name,
            "school_id": result.student.school_id,
        },
        "location": {
            "id": result.location.location_id,
            "name": result.location.name,
            "code": result.location.code,
        },
        "direction": result.direction.value,
        "source": result.source.value,
    }


def register(app: Flask, container: Container) -> None:
    def _ingest(
        *,
        source: ScanSource,
        credential: Any,
        location_code: Any,
        school_id: Any,
        device_label: Optional[str],
    ):
        try:
            result = container.ingestion_service.ingest(
                school_id=school_id,
                credential=credential,
                location_code=location_code,
                source=source,
                device_label=device_label,
            )
        except ValidationError as e:
            return error_response(str(e), e.reason, 400)
        except NotFoundError as e:
            return error_response(str(e), e.reason, 404)
        except StoreError as e:
            logger.exception("scan %s store failure", source.value.lower())
            return error_response("Internal server error", e.reason, 500)
        except Exception:
            logger.exception("scan %s error", source.value.lower())
            return error_response("Internal server error", "internal_error", 500)
        return jsonify(scan_result_payload(result))

    @app.route("/api/scan/qr", methods=["POST"], endpoint="api_scan_qr")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_scan_qr():
        data = request.get_json(silent=True) or {}
        return _ingest(
            source=ScanSource.QR,
            credential=data.get("qrValue"),
            location_code=data.get("locationCode"),
            school_id=data.get("schoolId"),
            device_label=data.get("deviceLabel"),
        )

    @app.route("/api/scan/nfc", methods=["POST"], endpoint="api_scan_nfc")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_scan_nfc():
        data = request.get_json(silent=True) or {}
        return _ingest(
            source=ScanSource.NFC,
            credential=data.get("cardUid"),
            location_code=data.get("locationCode"),
            school_id=data.get("schoolId"),
            device_label=data.get("deviceLabel"),
        )

    @app.route("/api/scan/qr/image", methods=["POST"], endpoint="api_scan_qr_image")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_scan_qr_image():
        """Decode a photographed badge, then ingest it as a QR scan."""
        if "image" not in request.files:
            return error_response("image file is required", ValidationError.reason, 400)

        try:
            qr_value = decode_qr_image(request.files["image"].stream)
        except ValidationError as e:
            return error_response(str(e), e.reason, 400)
        except Exception:
            logger.exception("qr image decode error")
            return error_response("Internal server error", "internal_error", 500)

        if not qr_value:
            return error_response("No QR code detected in image", "qr_not_detected", 400)

        return _ingest(
            source=ScanSource.QR,
            credential=qr_value,
            location_code=request.form.get("locationCode"),
            school_id=request.form.get("schoolId"),
            device_label=request.form.get("deviceLabel"),
        )
