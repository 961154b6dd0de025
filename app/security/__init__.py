"""Security modules for onepost."""

from app.security.logging import RequestLogMiddleware, configure_logging
from app.security.rate_limit import limiter, WRITE_RATE_LIMIT
from app.security.sessions import (
    create_session_token,
    read_session_token,
    get_current_author,
    get_optional_author,
)

__all__ = [
    "RequestLogMiddleware",
    "configure_logging",
    "limiter",
    "WRITE_RATE_LIMIT",
    "create_session_token",
    "read_session_token",
    "get_current_author",
    "get_optional_author",
]
