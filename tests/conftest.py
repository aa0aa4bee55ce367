from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

import pytest

from hall_guardian.auth.tokens import issue_token
from hall_guardian.container import wire_container
from hall_guardian.core.enums import Direction, LocationType, Role, ScanSource
from hall_guardian.core.exceptions import ConflictError, StudentNotFoundError
from hall_guardian.locations.model import Location
from hall_guardian.main import create_app
from hall_guardian.scans.model import LatestScanRow, OccupantRow, OutOfClassRow, ScanEvent
from hall_guardian.students.model import Student

TEST_JWT_SECRET = "test-jwt-secret"


class InMemoryStudents:
    def __init__(self):
        self._by_id: dict[int, Student] = {}
        self._lock = threading.Lock()
        self._id = 0

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self._by_id.get(int(student_id))

    def get_by_qr_value(self, *, school_id: int, qr_value: str) -> Optional[Student]:
        for s in self._by_id.values():
            if s.school_id == school_id and s.qr_value == qr_value:
                return s
        return None

    def get_by_card_uid(self, *, school_id: int, card_uid: str) -> Optional[Student]:
        for s in self._by_id.values():
            if s.school_id == school_id and s.card_uid == card_uid:
                return s
        return None

    def create(self, *, school_id, school_id_no, full_name, grade=None, qr_value=None, card_uid=None) -> int:
        with self._lock:
            for s in self._by_id.values():
                if s.school_id != school_id:
                    continue
                if s.school_id_no == school_id_no:
                    raise ConflictError("duplicate school_id_no")
                if qr_value and s.qr_value == qr_value:
                    raise ConflictError("duplicate qr_value")
                if card_uid and s.card_uid == card_uid:
                    raise ConflictError("duplicate card_uid")
            self._id += 1
            self._by_id[self._id] = Student(
                student_id=self._id,
                school_id=school_id,
                school_id_no=school_id_no,
                full_name=full_name,
                grade=grade,
                qr_value=qr_value,
                card_uid=card_uid,
            )
            return self._id


class InMemoryLocations:
    """Emulates the (school_id, code) unique key of the locations table."""

    def __init__(self, *, lookup_delay: float = 0.0):
        self._by_id: dict[int, Location] = {}
        self._lock = threading.Lock()
        self._id = 0
        self.lookup_delay = lookup_delay
        self.create_calls = 0

    def get_by_id(self, location_id: int) -> Optional[Location]:
        return self._by_id.get(int(location_id))

    def get_by_code(self, *, school_id: int, code: str) -> Optional[Location]:
        found = None
        for loc in list(self._by_id.values()):
            if loc.school_id == school_id and loc.code == code:
                found = loc
        if self.lookup_delay:
            time.sleep(self.lookup_delay)
        return found

    def create(self, *, school_id, name, code, location_type=None) -> int:
        with self._lock:
            self.create_calls += 1
            for loc in self._by_id.values():
                if loc.school_id == school_id and loc.code == code:
                    raise ConflictError(f"Location code {code!r} already exists")
            self._id += 1
            self._by_id[self._id] = Location(
                location_id=self._id,
                school_id=school_id,
                name=name,
                code=code,
                location_type=location_type,
            )
            return self._id

    def all(self) -> list[Location]:
        return list(self._by_id.values())


class _InMemoryStudentEventLog:
    def __init__(self, store: "InMemoryScanEvents", student_id: int):
        self._store = store
        self._student_id = student_id
        self.pending: list[ScanEvent] = []

    def latest(self) -> Optional[ScanEvent]:
        latest = self._store.latest_for_student(self._student_id)
        if self._store.read_delay:
            time.sleep(self._store.read_delay)
        if self.pending:
            return self.pending[-1]
        return latest

    def append(self, *, location_id, direction, source, device_label=None) -> ScanEvent:
        previous = self.latest()
        scanned_at = datetime.now()
        if previous is not None and previous.scanned_at > scanned_at:
            scanned_at = previous.scanned_at
        event = ScanEvent(
            event_id=self._store.next_event_id(),
            student_id=self._student_id,
            location_id=int(location_id),
            direction=Direction(direction),
            source=ScanSource(source),
            scanned_at=scanned_at,
            device_label=device_label,
        )
        self.pending.append(event)
        return event


class InMemoryScanEvents:
    """Append-only event list with one lock per student.

    Appends made through ``locked_history`` become visible only when the block
    exits cleanly, like a committed transaction.
    """

    def __init__(self, students: InMemoryStudents, locations: InMemoryLocations, *, read_delay: float = 0.0):
        self._students = students
        self._locations = locations
        self._events: list[ScanEvent] = []
        self._guard = threading.Lock()
        self._student_locks: dict[int, threading.Lock] = {}
        self._id = 0
        self.read_delay = read_delay

    def next_event_id(self) -> int:
        with self._guard:
            self._id += 1
            return self._id

    def all(self) -> list[ScanEvent]:
        with self._guard:
            return list(self._events)

    def add(self, event: ScanEvent) -> None:
        with self._guard:
            self._events.append(event)
            self._id = max(self._id, event.event_id)

    def _student_lock(self, student_id: int) -> threading.Lock:
        with self._guard:
            return self._student_locks.setdefault(student_id, threading.Lock())

    def latest_for_student(self, student_id: int) -> Optional[ScanEvent]:
        mine = [e for e in self.all() if e.student_id == int(student_id)]
        if not mine:
            return None
        return max(mine, key=lambda e: (e.scanned_at, e.event_id))

    @contextmanager
    def locked_history(self, student_id: int) -> Iterator[_InMemoryStudentEventLog]:
        if self._students.get_by_id(student_id) is None:
            raise StudentNotFoundError(f"Student {student_id} not found")
        with self._student_lock(int(student_id)):
            log = _InMemoryStudentEventLog(self, int(student_id))
            yield log
            with self._guard:
                self._events.extend(log.pending)

    def _latest_per_student(self) -> list[ScanEvent]:
        latest: dict[int, ScanEvent] = {}
        for e in self.all():
            cur = latest.get(e.student_id)
            if cur is None or (e.scanned_at, e.event_id) > (cur.scanned_at, cur.event_id):
                latest[e.student_id] = e
        return sorted(latest.values(), key=lambda e: (e.scanned_at, e.event_id), reverse=True)

    def latest_with_location(self, student_id: int) -> Optional[LatestScanRow]:
        event = self.latest_for_student(student_id)
        if event is None:
            return None
        loc = self._locations.get_by_id(event.location_id)
        return LatestScanRow(event=event, location_name=loc.name, location_code=loc.code)

    def list_occupants(self, location_id: int) -> list[OccupantRow]:
        rows = []
        for e in self._latest_per_student():
            if e.location_id == int(location_id) and e.direction is Direction.IN:
                s = self._students.get_by_id(e.student_id)
                rows.append(
                    OccupantRow(student_id=s.student_id, full_name=s.full_name, direction=e.direction, scanned_at=e.scanned_at)
                )
        return rows

    def list_currently_out(self, school_id: int) -> list[OutOfClassRow]:
        rows = []
        for e in self._latest_per_student():
            s = self._students.get_by_id(e.student_id)
            if s.school_id != int(school_id) or e.direction is not Direction.OUT:
                continue
            loc = self._locations.get_by_id(e.location_id)
            rows.append(
                OutOfClassRow(
                    student_id=s.student_id,
                    full_name=s.full_name,
                    location_name=loc.name,
                    location_code=loc.code,
                    direction=e.direction,
                    scanned_at=e.scanned_at,
                )
            )
        return rows


@pytest.fixture
def students():
    repo = InMemoryStudents()
    repo.create(school_id=1, school_id_no="S-1001", full_name="Ava Patel", grade="9", qr_value="QR:S-1001", card_uid="04A1B2C3")
    repo.create(school_id=1, school_id_no="S-1002", full_name="Ben Ortiz", grade="10", qr_value="QR:S-1002")
    repo.create(school_id=1, school_id_no="S-1003", full_name="Chen Li", grade="11", card_uid="04D4E5F6")
    repo.create(school_id=2, school_id_no="S-2001", full_name="Dana Kim", qr_value="QR:S-1001")
    return repo


@pytest.fixture
def locations():
    repo = InMemoryLocations()
    repo.create(school_id=1, name="Room 101", code="RM-101", location_type=LocationType.CLASSROOM)
    repo.create(school_id=1, name="Main Entrance", code="MAIN-ENT", location_type=LocationType.ENTRANCE)
    return repo


@pytest.fixture
def scan_events(students, locations):
    return InMemoryScanEvents(students, locations)


@pytest.fixture
def container(students, locations, scan_events):
    return wire_container(students_repo=students, locations_repo=locations, scan_events_repo=scan_events)


@pytest.fixture
def ingestion(container):
    return container.ingestion_service


@pytest.fixture
def presence(container):
    return container.presence_service


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def _bearer(role: Role = Role.TEACHER, *, school_id: int = 1, user_id: int = 7, secret: str = TEST_JWT_SECRET) -> dict:
    token = issue_token(user_id=user_id, role=role, school_id=school_id, secret=secret)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_headers():
    return _bearer


@pytest.fixture
def teacher_headers():
    return _bearer(Role.TEACHER)


@pytest.fixture
def admin_headers():
    return _bearer(Role.ADMIN)


@pytest.fixture
def add_event(scan_events):
    """Insert a historical event directly, bypassing ingestion."""

    def _add(event_id: int, student_id: int, location_id: int, direction: Direction, when: datetime) -> ScanEvent:
        event = ScanEvent(
            event_id=event_id,
            student_id=student_id,
            location_id=location_id,
            direction=direction,
            source=ScanSource.QR,
            scanned_at=when,
        )
        scan_events.add(event)
        return event

    return _add
