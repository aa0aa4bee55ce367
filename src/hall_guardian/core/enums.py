from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles carried in the bearer token."""

    ADMIN = "ADMIN"
    TEACHER = "TEACHER"


class Direction(str, Enum):
    """Presence direction of a student relative to the building."""

    IN = "IN"
    OUT = "OUT"

    def opposite(self) -> "Direction":
        return Direction.OUT if self is Direction.IN else Direction.IN


class ScanSource(str, Enum):
    """Credential channel that produced a scan."""

    QR = "QR"
    NFC = "NFC"

    @property
    def credential_field(self) -> str:
        """Name of the request field holding the credential for this source."""
        return "qrValue" if self is ScanSource.QR else "cardUid"

    @property
    def credential_label(self) -> str:
        return "QR" if self is ScanSource.QR else "card UID"


class LocationType(str, Enum):
    CLASSROOM = "CLASSROOM"
    HALLWAY = "HALLWAY"
    ENTRANCE = "ENTRANCE"
    UNKNOWN = "UNKNOWN"


class PresenceState(str, Enum):
    NO_SCANS = "NO_SCANS"
    IN_LOCATION = "IN_LOCATION"
    OUT_OF_LOCATION = "OUT_OF_LOCATION"
