from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import LocationType


@dataclass(frozen=True)
class Location:
    """Domain entity: a scannable place inside a school."""

    location_id: int
    school_id: int
    name: str
    code: str
    location_type: Optional[LocationType] = None
