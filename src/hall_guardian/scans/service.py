from __future__ import annotations

import logging
from typing import Any, Optional

from ..common.validators import clean_text, require_positive_int
from ..core.enums import ScanSource
from ..core.exceptions import StudentNotFoundError, ValidationError
from ..directory.service import DirectoryResolver
from ..presence.resolver import PresenceResolver
from .model import ScanResult
from .repository import ScanEventRepository

logger = logging.getLogger(__name__)


class ScanIngestionService:
    """Use case: record one badge read as an IN/OUT event.

    The direction read and the event insert happen under the student's lock in
    the event store, so concurrent scans of one student cannot both toggle from
    the same latest event. Scans of different students do not contend.
    """

    def __init__(
        self,
        events: ScanEventRepository,
        directory: DirectoryResolver,
        presence: PresenceResolver,
    ):
        self._events = events
        self._directory = directory
        self._presence = presence

    def ingest(
        self,
        *,
        school_id: Any,
        credential: Any,
        location_code: Any,
        source: ScanSource | str,
        device_label: Optional[str] = None,
    ) -> ScanResult:
        source = ScanSource(source)
        credential_text = clean_text(credential)
        location_code_text = clean_text(location_code)

        missing = [
            field
            for field, value in (
                (source.credential_field, credential_text),
                ("locationCode", location_code_text),
                ("schoolId", clean_text(school_id)),
            )
            if value is None
        ]
        if missing:
            raise ValidationError(
                f"{source.credential_field}, locationCode, and schoolId are required",
                fields=missing,
            )
        school = require_positive_int(school_id, "schoolId")

        student = self._directory.resolve_student(school, credential_text, source)
        if student is None:
            raise StudentNotFoundError(f"Student not found for that {source.credential_label}")

        location = self._directory.resolve_or_create_location(school, location_code_text)

        with self._events.locked_history(student.student_id) as history:
            direction = self._presence.next_direction(student.student_id, history=history)
            event = history.append(
                location_id=location.location_id,
                direction=direction,
                source=source,
                device_label=clean_text(device_label),
            )

        logger.info(
            "Scan %s: student=%s location=%s direction=%s source=%s",
            event.event_id,
            student.student_id,
            location.code,
            event.direction.value,
            source.value,
        )
        return ScanResult(event=event, student=student, location=location)
