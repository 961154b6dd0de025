"""
Rate limiting for write routes.

Reads are cheap and cacheable; creating, editing and deleting posts is
limited per client IP.
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

WRITE_RATE_LIMIT = os.getenv("ONEPOST_WRITE_RATE_LIMIT", "30/minute")
RATE_LIMIT_ENABLED = os.getenv("ONEPOST_RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no")

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)
