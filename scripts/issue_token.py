"""Mint a bearer token for a scanner device or a staff tool.

Usage:
    python scripts/issue_token.py --role TEACHER --school 1 --user 42
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from dotenv import load_dotenv

from hall_guardian.auth.tokens import issue_token
from hall_guardian.config import get_settings_module
from hall_guardian.core.enums import Role


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.TEACHER.value)
    parser.add_argument("--school", type=int, required=True, help="schoolId claim")
    parser.add_argument("--user", type=int, default=0, help="userId claim")
    parser.add_argument("--ttl-hours", type=int, default=None)
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    ttl_hours = args.ttl_hours if args.ttl_hours is not None else int(settings.JWT_EXPIRES_HOURS)

    print(
        issue_token(
            user_id=args.user,
            role=Role(args.role),
            school_id=args.school,
            secret=settings.JWT_SECRET,
            ttl_hours=ttl_hours,
        )
    )


if __name__ == "__main__":
    main()
