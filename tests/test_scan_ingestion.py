from __future__ import annotations

import threading
from contextlib import contextmanager

import pytest

from hall_guardian.core.enums import Direction, LocationType, ScanSource
from hall_guardian.core.exceptions import StudentNotFoundError, ValidationError


def _ordered(events, student_id):
    mine = [e for e in events.all() if e.student_id == student_id]
    return sorted(mine, key=lambda e: (e.scanned_at, e.event_id))


def test_first_scan_is_in_and_creates_unknown_location(ingestion, locations, scan_events):
    result = ingestion.ingest(school_id=1, credential="QR:S-1001", location_code="GYM", source=ScanSource.QR)

    assert result.direction is Direction.IN
    assert result.source is ScanSource.QR
    assert result.student.student_id == 1
    assert result.location.code == "GYM"
    assert result.location.name == "GYM"
    assert result.location.location_type is LocationType.UNKNOWN
    assert [e.event_id for e in scan_events.all()] == [result.event.event_id]


def test_gym_then_library_scenario(ingestion, presence, locations):
    first = ingestion.ingest(school_id=1, credential="QR:S-1001", location_code="GYM", source="QR")
    second = ingestion.ingest(school_id=1, credential="QR:S-1001", location_code="GYM", source="QR")
    third = ingestion.ingest(school_id=1, credential="QR:S-1001", location_code="LIBRARY", source="QR")

    assert [first.direction, second.direction, third.direction] == [Direction.IN, Direction.OUT, Direction.IN]
    assert second.location.location_id == first.location.location_id

    library = third.location
    assert library.location_id != first.location.location_id
    assert library.location_type is LocationType.UNKNOWN
    assert [r.student_id for r in presence.occupants(library.location_id)] == [1]
    assert presence.occupants(first.location.location_id) == []


def test_existing_location_is_reused(ingestion, locations):
    result = ingestion.ingest(school_id=1, credential="QR:S-1002", location_code="RM-101", source="QR")

    assert result.location.name == "Room 101"
    assert result.location.location_type is LocationType.CLASSROOM
    assert len(locations.all()) == 2


def test_directions_alternate_across_many_scans(ingestion, scan_events):
    codes = ["RM-101", "HALL-E", "RM-101", "GYM", "GYM", "MAIN-ENT", "RM-101"]
    for code in codes:
        ingestion.ingest(school_id=1, credential="QR:S-1002", location_code=code, source="QR")

    events = _ordered(scan_events, 2)
    assert len(events) == len(codes)
    assert events[0].direction is Direction.IN
    for prev, nxt in zip(events, events[1:]):
        assert prev.direction is not nxt.direction
        assert (prev.scanned_at, prev.event_id) < (nxt.scanned_at, nxt.event_id)


def test_nfc_scan_resolves_by_card_uid(ingestion):
    result = ingestion.ingest(
        school_id=1, credential=" 04D4E5F6 ", location_code="RM-101", source=ScanSource.NFC, device_label="door-2"
    )

    assert result.student.full_name == "Chen Li"
    assert result.source is ScanSource.NFC
    assert result.event.device_label == "door-2"


def test_same_qr_value_in_other_school_resolves_other_student(ingestion):
    result = ingestion.ingest(school_id="2", credential="QR:S-1001", location_code="GYM", source="QR")

    assert result.student.full_name == "Dana Kim"
    assert result.location.school_id == 2


def test_unknown_qr_creates_no_event(ingestion, presence, scan_events, locations):
    ingestion.ingest(school_id=1, credential="QR:S-1001", location_code="RM-101", source="QR")

    with pytest.raises(StudentNotFoundError) as exc:
        ingestion.ingest(school_id=1, credential="QR:NOPE", location_code="GYM", source="QR")

    assert str(exc.value) == "Student not found for that QR"
    assert exc.value.reason == "student_not_found"
    assert len(scan_events.all()) == 1
    assert [loc.code for loc in locations.all()] == ["RM-101", "MAIN-ENT"]
    assert [r.student_id for r in presence.occupants(1)] == [1]


def test_unknown_card_uid_message(ingestion):
    with pytest.raises(StudentNotFoundError, match="Student not found for that card UID"):
        ingestion.ingest(school_id=1, credential="FFFF", location_code="GYM", source="NFC")


def test_card_uid_is_not_matched_as_qr(ingestion):
    with pytest.raises(StudentNotFoundError):
        ingestion.ingest(school_id=1, credential="04A1B2C3", location_code="GYM", source="QR")


def test_missing_location_code_has_no_side_effects(ingestion, scan_events, locations):
    with pytest.raises(ValidationError) as exc:
        ingestion.ingest(school_id=1, credential="QR:S-1001", location_code="   ", source="QR")

    assert exc.value.reason == "missing_fields"
    assert exc.value.fields == ("locationCode",)
    assert str(exc.value) == "qrValue, locationCode, and schoolId are required"
    assert scan_events.all() == []
    assert len(locations.all()) == 2


def test_missing_fields_are_reported_in_order(ingestion):
    with pytest.raises(ValidationError) as exc:
        ingestion.ingest(school_id=None, credential="", location_code=None, source="NFC")

    assert exc.value.fields == ("cardUid", "locationCode", "schoolId")
    assert str(exc.value).startswith("cardUid, locationCode")


@pytest.mark.parametrize("school_id", ["abc", 0, -3, True])
def test_school_id_must_be_positive_int(ingestion, school_id):
    with pytest.raises(ValidationError) as exc:
        ingestion.ingest(school_id=school_id, credential="QR:S-1001", location_code="GYM", source="QR")

    assert exc.value.reason == "invalid_field"


def test_failed_append_leaves_no_event(ingestion, scan_events, monkeypatch):
    original = scan_events.locked_history

    @contextmanager
    def failing(student_id):
        with original(student_id) as log:
            real_append = log.append

            def append(**kwargs):
                real_append(**kwargs)
                raise RuntimeError("connection lost after insert")

            log.append = append
            yield log

    monkeypatch.setattr(scan_events, "locked_history", failing)

    with pytest.raises(RuntimeError):
        ingestion.ingest(school_id=1, credential="QR:S-1001", location_code="RM-101", source="QR")

    assert scan_events.all() == []


def test_concurrent_scans_of_one_student_keep_alternating(ingestion, scan_events):
    scan_events.read_delay = 0.002
    n = 16
    barrier = threading.Barrier(n)
    errors = []

    def worker():
        try:
            barrier.wait()
            ingestion.ingest(school_id=1, credential="QR:S-1001", location_code="RM-101", source="QR")
        except Exception as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    events = _ordered(scan_events, 1)
    assert len(events) == n
    assert events[0].direction is Direction.IN
    for prev, nxt in zip(events, events[1:]):
        assert prev.direction is not nxt.direction


def test_concurrent_scans_of_different_students_are_independent(ingestion, scan_events):
    scan_events.read_delay = 0.002
    credentials = ["QR:S-1001", "QR:S-1002"] * 6
    barrier = threading.Barrier(len(credentials))

    def worker(credential):
        barrier.wait()
        ingestion.ingest(school_id=1, credential=credential, location_code="RM-101", source="QR")

    threads = [threading.Thread(target=worker, args=(c,)) for c in credentials]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for student_id in (1, 2):
        events = _ordered(scan_events, student_id)
        assert len(events) == 6
        assert [e.direction for e in events] == [Direction.IN, Direction.OUT] * 3
