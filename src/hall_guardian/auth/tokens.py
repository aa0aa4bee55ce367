from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..core.constants import DEFAULT_TOKEN_TTL_HOURS, JWT_ALGORITHM
from ..core.enums import Role
from ..core.exceptions import AuthenticationError


@dataclass(frozen=True)
class CallerContext:
    """Verified caller identity handed to the scan and presence endpoints."""

    user_id: int
    role: Role
    school_id: Optional[int]


def issue_token(
    *,
    user_id: int,
    role: Role,
    school_id: Optional[int],
    secret: str,
    ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": int(user_id),
        "role": Role(role).value,
        "schoolId": int(school_id) if school_id is not None else None,
        "iat": now,
        "exp": now + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, *, secret: str) -> CallerContext:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid or expired token")

    try:
        role = Role(payload.get("role"))
        user_id = int(payload["userId"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token")

    school_id = payload.get("schoolId")
    return CallerContext(
        user_id=user_id,
        role=role,
        school_id=int(school_id) if school_id is not None else None,
    )
