"""
Author session tokens.

Identity is owned by an external auth service; this module only verifies
the signed token it hands out and exposes the author id to the routes.
"""

import os
import secrets
import warnings
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, Request
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

SESSION_COOKIE_NAME = "onepost_session"
SESSION_MAX_AGE = int(os.getenv("ONEPOST_SESSION_MAX_AGE", str(60 * 60 * 24 * 7)))  # 7 days

# Security: Get secret key from environment
SECRET_KEY = os.getenv("ONEPOST_SECRET_KEY")
IS_PRODUCTION = os.getenv("ONEPOST_ENV") == "production"

if not SECRET_KEY:
    if IS_PRODUCTION:
        raise RuntimeError("ONEPOST_SECRET_KEY must be set in production environment")
    warnings.warn("ONEPOST_SECRET_KEY not set - using random key (sessions won't persist across restarts)")
    SECRET_KEY = secrets.token_hex(32)

serializer = URLSafeTimedSerializer(SECRET_KEY, salt="onepost-session")


def create_session_token(author_id: str) -> str:
    """Create a signed session token for an author."""
    data = {
        "author_id": author_id,
        "created_at": datetime.now(timezone.utc).isoformat()
    }
    return serializer.dumps(data)


def read_session_token(token: str) -> Optional[str]:
    """Return the author id of a valid, unexpired token."""
    try:
        data = serializer.loads(token, max_age=SESSION_MAX_AGE)
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(data, dict):
        return None
    author_id = data.get("author_id")
    return author_id if isinstance(author_id, str) and author_id else None


def _request_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header.split(" ", 1)[1].strip()
    return request.cookies.get(SESSION_COOKIE_NAME)


def get_optional_author(request: Request) -> Optional[str]:
    """Author id of the caller, or None for anonymous requests."""
    token = _request_token(request)
    if not token:
        return None
    return read_session_token(token)


def get_current_author(request: Request) -> str:
    """Author id of the caller; 401 when not signed in."""
    author_id = get_optional_author(request)
    if not author_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return author_id
