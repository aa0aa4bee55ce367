from __future__ import annotations

from typing import Optional

from ..core.enums import Direction
from ..scans.repository import ScanEventRepository, StudentEventLog


class PresenceResolver:
    """Two-state toggle: the next scan flips the direction of the latest one.

    Direction tracks in/out of the building, not of a particular location: a
    scan at B right after IN at A yields OUT. Kept as-is pending product
    confirmation.
    """

    def __init__(self, events: ScanEventRepository):
        self._events = events

    def next_direction(self, student_id: int, *, history: Optional[StudentEventLog] = None) -> Direction:
        if history is not None:
            last = history.latest()
        else:
            last = self._events.latest_for_student(int(student_id))

        if last is None:
            # No history: assume the student is entering.
            return Direction.IN
        return last.direction.opposite()
