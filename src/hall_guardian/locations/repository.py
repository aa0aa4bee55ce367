from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import LocationType
from .model import Location


class LocationRepository(Protocol):
    def get_by_id(self, location_id: int) -> Optional[Location]:
        raise NotImplementedError

    def get_by_code(self, *, school_id: int, code: str) -> Optional[Location]:
        raise NotImplementedError

    def create(
        self,
        *,
        school_id: int,
        name: str,
        code: str,
        location_type: Optional[LocationType] = None,
    ) -> int:
        """Insert a location and return location_id.

        Raises ConflictError when (school_id, code) already exists.
        """

        raise NotImplementedError
