from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Direction, ScanSource
from ..locations.model import Location
from ..students.model import Student


@dataclass(frozen=True)
class ScanEvent:
    """Domain entity: one immutable scan. Only ever inserted, never updated."""

    event_id: int
    student_id: int
    location_id: int
    direction: Direction
    source: ScanSource
    scanned_at: datetime
    device_label: Optional[str] = None


@dataclass(frozen=True)
class ScanResult:
    """What one successful ingest produced."""

    event: ScanEvent
    student: Student
    location: Location

    @property
    def direction(self) -> Direction:
        return self.event.direction

    @property
    def source(self) -> ScanSource:
        return self.event.source


@dataclass(frozen=True)
class LatestScanRow:
    """Read-model: a student's latest event joined with its location."""

    event: ScanEvent
    location_name: str
    location_code: str


@dataclass(frozen=True)
class OccupantRow:
    """Read-model: a student whose latest event is IN at a given location."""

    student_id: int
    full_name: str
    direction: Direction
    scanned_at: datetime


@dataclass(frozen=True)
class OutOfClassRow:
    """Read-model: a student whose latest event is OUT, with where it happened."""

    student_id: int
    full_name: str
    location_name: str
    location_code: str
    direction: Direction
    scanned_at: datetime
