from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PresenceState


@dataclass(frozen=True)
class CurrentLocation:
    location_id: int
    name: str
    code: str


@dataclass(frozen=True)
class PresenceStatus:
    """Derived, never stored: where the event history says a student is."""

    student_id: int
    state: PresenceState
    current_location: Optional[CurrentLocation] = None
    last_scan_at: Optional[datetime] = None
