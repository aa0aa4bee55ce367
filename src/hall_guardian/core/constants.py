"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

JWT_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_HOURS = 24 * 7
DEFAULT_CONNECTION_TIMEOUT_SECONDS = 10

QR_BOX_SIZE = 10
QR_BORDER = 2
