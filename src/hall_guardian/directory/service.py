from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import clean_text, require_non_empty, require_positive_int
from ..core.enums import LocationType, ScanSource
from ..core.exceptions import ConflictError, StoreError
from ..locations.model import Location
from ..locations.repository import LocationRepository
from ..students.model import Student
from ..students.repository import StudentRepository

logger = logging.getLogger(__name__)


class DirectoryResolver:
    """Maps physical identifiers (QR value, card UID, location code) to records.

    Lookups return None for unknown identifiers; callers decide what a miss means.
    """

    def __init__(self, students: StudentRepository, locations: LocationRepository):
        self._students = students
        self._locations = locations

    def resolve_student_by_qr(self, school_id: int, qr_value: str) -> Optional[Student]:
        return self._students.get_by_qr_value(school_id=int(school_id), qr_value=qr_value)

    def resolve_student_by_card_uid(self, school_id: int, card_uid: str) -> Optional[Student]:
        return self._students.get_by_card_uid(school_id=int(school_id), card_uid=card_uid)

    def resolve_student(self, school_id: int, credential: str, source: ScanSource) -> Optional[Student]:
        if source is ScanSource.NFC:
            return self.resolve_student_by_card_uid(school_id, credential)
        return self.resolve_student_by_qr(school_id, credential)

    def resolve_or_create_location(self, school_id: int, location_code: str) -> Location:
        existing = self._locations.get_by_code(school_id=int(school_id), code=location_code)
        if existing:
            return existing

        try:
            location_id = self._locations.create(
                school_id=int(school_id),
                name=location_code,
                code=location_code,
                location_type=LocationType.UNKNOWN,
            )
            logger.info(
                "Auto-created location %s (id=%s) for school %s", location_code, location_id, school_id
            )
        except ConflictError:
            # Another scan created it first; the unique key guarantees a single row.
            logger.debug("Location %s for school %s created concurrently", location_code, school_id)

        location = self._locations.get_by_code(school_id=int(school_id), code=location_code)
        if location is None:
            raise StoreError(f"Location {location_code!r} vanished after creation")
        return location

    def get_student(self, student_id: int) -> Optional[Student]:
        return self._students.get_by_id(int(student_id))

    def get_location(self, location_id: int) -> Optional[Location]:
        return self._locations.get_by_id(int(location_id))

    # Administrative seam: explicit creation used by seeding and admin tooling.

    def create_location(
        self,
        *,
        school_id: int,
        name: str,
        code: str,
        location_type: Optional[LocationType] = None,
    ) -> Location:
        school_id = require_positive_int(school_id, "schoolId")
        name = require_non_empty(name, "name")
        code = require_non_empty(code, "code")

        location_id = self._locations.create(
            school_id=school_id, name=name, code=code, location_type=location_type
        )
        return Location(
            location_id=location_id,
            school_id=school_id,
            name=name,
            code=code,
            location_type=location_type,
        )

    def register_student(
        self,
        *,
        school_id: int,
        school_id_no: str,
        full_name: str,
        grade: Optional[str] = None,
        qr_value: Optional[str] = None,
        card_uid: Optional[str] = None,
    ) -> Student:
        school_id = require_positive_int(school_id, "schoolId")
        school_id_no = require_non_empty(school_id_no, "school_id_no")
        full_name = require_non_empty(full_name, "full_name")

        fields = {
            "grade": clean_text(grade),
            "qr_value": clean_text(qr_value),
            "card_uid": clean_text(card_uid),
        }
        student_id = self._students.create(
            school_id=school_id, school_id_no=school_id_no, full_name=full_name, **fields
        )
        return Student(
            student_id=student_id,
            school_id=school_id,
            school_id_no=school_id_no,
            full_name=full_name,
            **fields,
        )
