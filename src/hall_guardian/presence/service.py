from __future__ import annotations

from typing import Sequence

from ..core.enums import Direction, PresenceState
from ..core.exceptions import NotFoundError, StudentNotFoundError
from ..locations.repository import LocationRepository
from ..scans.model import OccupantRow, OutOfClassRow
from ..scans.repository import ScanEventRepository
from ..students.repository import StudentRepository
from .model import CurrentLocation, PresenceStatus


class PresenceQueryService:
    """Read side: every view is recomputed from the event store on each call."""

    def __init__(self, events: ScanEventRepository, students: StudentRepository, locations: LocationRepository):
        self._events = events
        self._students = students
        self._locations = locations

    def current_location(self, student_id: int) -> PresenceStatus:
        if not self._students.get_by_id(int(student_id)):
            raise StudentNotFoundError(f"Student {student_id} not found")

        latest = self._events.latest_with_location(int(student_id))
        if latest is None:
            return PresenceStatus(student_id=int(student_id), state=PresenceState.NO_SCANS)

        event = latest.event
        if event.direction is Direction.IN:
            return PresenceStatus(
                student_id=int(student_id),
                state=PresenceState.IN_LOCATION,
                current_location=CurrentLocation(
                    location_id=event.location_id,
                    name=latest.location_name,
                    code=latest.location_code,
                ),
                last_scan_at=event.scanned_at,
            )
        return PresenceStatus(
            student_id=int(student_id),
            state=PresenceState.OUT_OF_LOCATION,
            last_scan_at=event.scanned_at,
        )

    def occupants(self, location_id: int) -> Sequence[OccupantRow]:
        if not self._locations.get_by_id(int(location_id)):
            raise NotFoundError(f"Location {location_id} not found", reason="location_not_found")
        return list(self._events.list_occupants(int(location_id)))

    def students_currently_out(self, school_id: int) -> Sequence[OutOfClassRow]:
        return list(self._events.list_currently_out(int(school_id)))
