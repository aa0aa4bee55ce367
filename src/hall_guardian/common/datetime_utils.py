from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a store timestamp for JSON responses."""
    if value is None:
        return None
    return value.isoformat()


def utc_now() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now(timezone.utc)
