from __future__ import annotations

from dataclasses import dataclass

from .database.connection import DBConfig, DatabaseConnection
from .directory.service import DirectoryResolver
from .locations.mysql_location_repository import MySQLLocationRepository
from .locations.repository import LocationRepository
from .presence.resolver import PresenceResolver
from .presence.service import PresenceQueryService
from .scans.mysql_scan_event_repository import MySQLScanEventRepository
from .scans.repository import ScanEventRepository
from .scans.service import ScanIngestionService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository


@dataclass(frozen=True)
class Container:
    students_repo: StudentRepository
    locations_repo: LocationRepository
    scan_events_repo: ScanEventRepository

    directory: DirectoryResolver
    presence_resolver: PresenceResolver
    ingestion_service: ScanIngestionService
    presence_service: PresenceQueryService


def wire_container(
    *,
    students_repo: StudentRepository,
    locations_repo: LocationRepository,
    scan_events_repo: ScanEventRepository,
) -> Container:
    directory = DirectoryResolver(students_repo, locations_repo)
    presence_resolver = PresenceResolver(scan_events_repo)
    ingestion_service = ScanIngestionService(scan_events_repo, directory, presence_resolver)
    presence_service = PresenceQueryService(scan_events_repo, students_repo, locations_repo)

    return Container(
        students_repo=students_repo,
        locations_repo=locations_repo,
        scan_events_repo=scan_events_repo,
        directory=directory,
        presence_resolver=presence_resolver,
        ingestion_service=ingestion_service,
        presence_service=presence_service,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))

    return wire_container(
        students_repo=MySQLStudentRepository(conn),
        locations_repo=MySQLLocationRepository(conn),
        scan_events_repo=MySQLScanEventRepository(conn),
    )
