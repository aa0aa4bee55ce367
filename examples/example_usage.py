"""Example: record a scan and read presence through the service layer, without Flask.

Run `python scripts/init_db.py` and `python scripts/seed_db.py` first.
"""

import importlib
import sys
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from hall_guardian.config import get_settings_module
from hall_guardian.container import build_container
from hall_guardian.core.enums import ScanSource


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    result = container.ingestion_service.ingest(
        school_id=1, credential="QR:S-1001", location_code="LIBRARY", source=ScanSource.QR
    )
    print(result.student.full_name, result.direction.value, result.location.code)

    status = container.presence_service.current_location(result.student.student_id)
    print(status.state.value, status.current_location)
    for row in container.presence_service.occupants(result.location.location_id):
        print(" ", row.full_name, row.scanned_at)


if __name__ == "__main__":
    main()
