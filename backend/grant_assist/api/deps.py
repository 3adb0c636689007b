"""
Shared API dependencies.
"""
import os
import secrets
from typing import Optional
from fastapi import Header

from grant_assist.core.errors import AuthenticationError


async def require_service_key(x_service_key: Optional[str] = Header(default=None)) -> None:
    """Allow admin routes only for callers presenting SERVICE_ROLE_KEY."""
    expected = os.getenv("SERVICE_ROLE_KEY")
    if not expected or not x_service_key or not secrets.compare_digest(x_service_key, expected):
        raise AuthenticationError("Invalid or missing service key")
