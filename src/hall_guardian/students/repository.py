from __future__ import annotations

from typing import Optional, Protocol

from .model import Student


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_qr_value(self, *, school_id: int, qr_value: str) -> Optional[Student]:
        raise NotImplementedError

    def get_by_card_uid(self, *, school_id: int, card_uid: str) -> Optional[Student]:
        raise NotImplementedError

    def create(
        self,
        *,
        school_id: int,
        school_id_no: str,
        full_name: str,
        grade: Optional[str] = None,
        qr_value: Optional[str] = None,
        card_uid: Optional[str] = None,
    ) -> int:
        """Insert a student and return student_id.

        Raises ConflictError when the school-local ID, QR value or card UID is taken.
        """

        raise NotImplementedError
