from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def clean_text(value: Any) -> Optional[str]:
    """Strip a request value; empty or missing becomes None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_non_empty(value: Any, field_name: str) -> str:
    text = clean_text(value)
    if text is None:
        raise ValidationError(f"{field_name} is required", fields=[field_name])
    return text


def require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a positive integer", reason="invalid_field", fields=[field_name])
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a positive integer", reason="invalid_field", fields=[field_name])
    if number <= 0:
        raise ValidationError(f"{field_name} must be a positive integer", reason="invalid_field", fields=[field_name])
    return number
