from __future__ import annotations

from typing import Any, Dict, Optional

import mysql.connector

from ..core.enums import LocationType
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, is_duplicate_key
from .model import Location
from .repository import LocationRepository


def _to_location(r: Dict[str, Any]) -> Location:
    raw_type = r.get("location_type")
    return Location(
        location_id=int(r["location_id"]),
        school_id=int(r["school_id"]),
        name=r["name"],
        code=r["code"],
        location_type=LocationType(raw_type) if raw_type else None,
    )


class MySQLLocationRepository(LocationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, location_id: int) -> Optional[Location]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT location_id, school_id, name, code, location_type
                FROM locations
                WHERE location_id=%s
                """,
                (int(location_id),),
            )
            r = fetchone(cur)
            return _to_location(r) if r else None

    def get_by_code(self, *, school_id: int, code: str) -> Optional[Location]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT location_id, school_id, name, code, location_type
                FROM locations
                WHERE school_id=%s AND code=%s
                """,
                (int(school_id), code),
            )
            r = fetchone(cur)
            return _to_location(r) if r else None

    def create(
        self,
        *,
        school_id: int,
        name: str,
        code: str,
        location_type: Optional[LocationType] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO locations(school_id, name, code, location_type)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(school_id), name, code, location_type.value if location_type else None),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ConflictError(f"Location code {code!r} already exists") from exc
                raise
            return int(cur.lastrowid)
