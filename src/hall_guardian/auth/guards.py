from __future__ import annotations

import logging
from functools import wraps

from flask import current_app, g, request

from ..common.responses import error_response
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .tokens import decode_token

logger = logging.getLogger(__name__)


def roles_required(*roles: Role):
    """Require a bearer token whose role is one of ``roles``.

    The verified caller is stored on ``flask.g.caller``.
    """

    allowed = {Role(r) for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
            if scheme != "Bearer" or not token.strip():
                return error_response("Missing or invalid auth token", AuthenticationError.reason, 401)

            try:
                caller = decode_token(token.strip(), secret=current_app.config["JWT_SECRET"])
            except AuthenticationError as e:
                logger.warning("Rejected token on %s %s", request.method, request.path)
                return error_response(str(e), e.reason, 401)

            if allowed and caller.role not in allowed:
                return error_response("Forbidden", AuthorizationError.reason, 403)

            g.caller = caller
            return view(*args, **kwargs)

        return wrapper

    return decorator
