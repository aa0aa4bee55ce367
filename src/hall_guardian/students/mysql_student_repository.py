from __future__ import annotations

from typing import Any, Dict, Optional

import mysql.connector

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, is_duplicate_key
from .model import Student
from .repository import StudentRepository

_COLUMNS = "student_id, school_id, school_id_no, full_name, grade, qr_value, card_uid"


def _to_student(r: Dict[str, Any]) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        school_id=int(r["school_id"]),
        school_id_no=r["school_id_no"],
        full_name=r["full_name"],
        grade=r.get("grade"),
        qr_value=r.get("qr_value"),
        card_uid=r.get("card_uid"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_qr_value(self, *, school_id: int, qr_value: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE school_id=%s AND qr_value=%s",
                (int(school_id), qr_value),
            )
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_card_uid(self, *, school_id: int, card_uid: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE school_id=%s AND card_uid=%s",
                (int(school_id), card_uid),
            )
            r = fetchone(cur)
            return _to_student(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO students(school_id, school_id_no, full_name, grade, qr_value, card_uid)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(school_id), school_id_no, full_name, grade, qr_value, card_uid),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ConflictError("Student ID, QR value or card UID already in use") from exc
                raise
            return int(cur.lastrowid)
