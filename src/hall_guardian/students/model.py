from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    """Domain entity: Student.

    Owned by the administrative side; the scan path only reads it.
    """

    student_id: int
    school_id: int
    school_id_no: str
    full_name: str
    grade: Optional[str] = None
    qr_value: Optional[str] = None
    card_uid: Optional[str] = None
