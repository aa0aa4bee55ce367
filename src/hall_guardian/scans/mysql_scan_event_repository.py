from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Sequence

from ..core.enums import Direction, ScanSource
from ..core.exceptions import StudentNotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LatestScanRow, OccupantRow, OutOfClassRow, ScanEvent
from .repository import ScanEventRepository, StudentEventLog

_EVENT_COLUMNS = "event_id, student_id, location_id, direction, source, device_label, scanned_at"


def _to_event(r: Dict[str, Any]) -> ScanEvent:
    return ScanEvent(
        event_id=int(r["event_id"]),
        student_id=int(r["student_id"]),
        location_id=int(r["location_id"]),
        direction=Direction(r["direction"]),
        source=ScanSource(r["source"]),
        scanned_at=r["scanned_at"],
        device_label=r.get("device_label"),
    )


class _MySQLStudentEventLog(StudentEventLog):
    """Bound to a transaction that holds the student's row lock."""

    def __init__(self, cur, student_id: int):
        self._cur = cur
        self._student_id = student_id
        self._latest: Optional[ScanEvent] = None
        self._latest_loaded = False

    def latest(self) -> Optional[ScanEvent]:
        # Plain read: the snapshot is taken after the student row lock is granted.
        self._cur.execute(
            f"""
            SELECT {_EVENT_COLUMNS}
            FROM scan_events
            WHERE student_id=%s
            ORDER BY scanned_at DESC, event_id DESC
            LIMIT 1
            """,
            (self._student_id,),
        )
        r = fetchone(self._cur)
        self._latest = _to_event(r) if r else None
        self._latest_loaded = True
        return self._latest

    def append(
        self,
        *,
        location_id: int,
        direction: Direction,
        source: ScanSource,
        device_label: Optional[str] = None,
    ) -> ScanEvent:
        previous = self._latest if self._latest_loaded else self.latest()
        params: tuple = (self._student_id, int(location_id), direction.value, source.value, device_label)

        if previous is None:
            self._cur.execute(
                """
                INSERT INTO scan_events(student_id, location_id, direction, source, device_label)
                VALUES(%s,%s,%s,%s,%s)
                """,
                params,
            )
        else:
            # Never stamp earlier than the previous event, even if the DB clock steps back.
            self._cur.execute(
                """
                INSERT INTO scan_events(student_id, location_id, direction, source, device_label, scanned_at)
                VALUES(%s,%s,%s,%s,%s, GREATEST(CURRENT_TIMESTAMP(6), %s))
                """,
                params + (previous.scanned_at,),
            )
        event_id = int(self._cur.lastrowid)

        self._cur.execute(f"SELECT {_EVENT_COLUMNS} FROM scan_events WHERE event_id=%s", (event_id,))
        event = _to_event(fetchone(self._cur))
        self._latest = event
        return event


class MySQLScanEventRepository(ScanEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def latest_for_student(self, student_id: int) -> Optional[ScanEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM scan_events
                WHERE student_id=%s
                ORDER BY scanned_at DESC, event_id DESC
                LIMIT 1
                """,
                (int(student_id),),
            )
            r = fetchone(cur)
            return _to_event(r) if r else None

    @contextmanager
    def locked_history(self, student_id: int) -> Iterator[StudentEventLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the student serializes concurrent scans of that student only.
            cur.execute("SELECT student_id FROM students WHERE student_id=%s FOR UPDATE", (int(student_id),))
            if not fetchone(cur):
                raise StudentNotFoundError(f"Student {student_id} not found")
            yield _MySQLStudentEventLog(cur, int(student_id))

    def latest_with_location(self, student_id: int) -> Optional[LatestScanRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT se.event_id, se.student_id, se.location_id, se.direction, se.source,
                       se.device_label, se.scanned_at,
                       l.name AS location_name, l.code AS location_code
                FROM scan_events se
                JOIN locations l ON l.location_id = se.location_id
                WHERE se.student_id=%s
                ORDER BY se.scanned_at DESC, se.event_id DESC
                LIMIT 1
                """,
                (int(student_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return LatestScanRow(event=_to_event(r), location_name=r["location_name"], location_code=r["location_code"])

    def list_occupants(self, location_id: int) -> Sequence[OccupantRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                WITH ranked AS (
                    SELECT se.event_id, se.student_id, se.location_id, se.direction, se.scanned_at,
                           ROW_NUMBER() OVER (
                               PARTITION BY se.student_id
                               ORDER BY se.scanned_at DESC, se.event_id DESC
                           ) AS rn
                    FROM scan_events se
                    WHERE se.student_id IN (
                        SELECT DISTINCT student_id FROM scan_events WHERE location_id=%s
                    )
                )
                SELECT s.student_id, s.full_name, r.direction, r.scanned_at
                FROM ranked r
                JOIN students s ON s.student_id = r.student_id
                WHERE r.rn = 1
                  AND r.direction = 'IN'
                  AND r.location_id = %s
                ORDER BY r.scanned_at DESC, r.event_id DESC
                """,
                (int(location_id), int(location_id)),
            )
            return [
                OccupantRow(
                    student_id=int(r["student_id"]),
                    full_name=r["full_name"],
                    direction=Direction(r["direction"]),
                    scanned_at=r["scanned_at"],
                )
                for r in fetchall(cur)
            ]

    def list_currently_out(self, school_id: int) -> Sequence[OutOfClassRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                WITH ranked AS (
                    SELECT se.event_id, se.student_id, se.location_id, se.direction, se.scanned_at,
                           ROW_NUMBER() OVER (
                               PARTITION BY se.student_id
                               ORDER BY se.scanned_at DESC, se.event_id DESC
                           ) AS rn
                    FROM scan_events se
                    JOIN students st ON st.student_id = se.student_id
                    WHERE st.school_id = %s
                )
                SELECT s.student_id, s.full_name,
                       l.name AS location_name, l.code AS location_code,
                       r.direction, r.scanned_at
                FROM ranked r
                JOIN students s ON s.student_id = r.student_id
                JOIN locations l ON l.location_id = r.location_id
                WHERE r.rn = 1
                  AND r.direction = 'OUT'
                ORDER BY r.scanned_at DESC, r.event_id DESC
                """,
                (int(school_id),),
            )
            return [
                OutOfClassRow(
                    student_id=int(r["student_id"]),
                    full_name=r["full_name"],
                    location_name=r["location_name"],
                    location_code=r["location_code"],
                    direction=Direction(r["direction"]),
                    scanned_at=r["scanned_at"],
                )
                for r in fetchall(cur)
            ]
