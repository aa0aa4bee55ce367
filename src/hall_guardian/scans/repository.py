from __future__ import annotations

from typing import ContextManager, Optional, Protocol, Sequence

from ..core.enums import Direction, ScanSource
from .model import LatestScanRow, OccupantRow, OutOfClassRow, ScanEvent


class StudentEventLog(Protocol):
    """One student's event history, held exclusively for a read-then-append."""

    def latest(self) -> Optional[ScanEvent]:
        raise NotImplementedError

    def append(
        self,
        *,
        location_id: int,
        direction: Direction,
        source: ScanSource,
        device_label: Optional[str] = None,
    ) -> ScanEvent:
        """Insert an event stamped by the store and return it."""

        raise NotImplementedError


class ScanEventRepository(Protocol):
    """Event store: append-only scan history plus latest-per-student queries."""

    def latest_for_student(self, student_id: int) -> Optional[ScanEvent]:
        raise NotImplementedError

    def locked_history(self, student_id: int) -> ContextManager[StudentEventLog]:
        """Serialize writers of one student's history.

        Everything done through the yielded log commits together when the block
        exits cleanly and is discarded when it raises. Other students are not
        blocked.
        """

        raise NotImplementedError

    def latest_with_location(self, student_id: int) -> Optional[LatestScanRow]:
        raise NotImplementedError

    def list_occupants(self, location_id: int) -> Sequence[OccupantRow]:
        raise NotImplementedError

    def list_currently_out(self, school_id: int) -> Sequence[OutOfClassRow]:
        raise NotImplementedError
