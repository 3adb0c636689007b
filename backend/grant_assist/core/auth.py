"""
Identity Verification

Maps the bearer credential issued by the external auth provider to a user id.
Tokens are HS256 JWTs whose "sub" claim is the user's id.
"""
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from grant_assist.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

# JWT Configuration (shared with the auth provider)
SECRET_KEY = os.getenv("AUTH_JWT_SECRET", "grant-assist-secret-key-change-in-production")
AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60

# Security scheme
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create an access token in the auth provider's format."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "aud": AUDIENCE})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_credential(token: str) -> Optional[str]:
    """Verify a bearer token and return the user id it was issued to."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], audience=AUDIENCE)
    except JWTError:
        return None
    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        return None
    return user_id


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    FastAPI dependency resolving the authenticated user id.

    Raises AuthenticationError when the Authorization header is absent,
    is not a bearer credential, or does not verify.
    """
    if not credentials:
        logger.info("Rejected request without bearer credential")
        raise AuthenticationError("Missing authorization header")

    user_id = verify_credential(credentials.credentials)
    if user_id is None:
        logger.info("Rejected request with invalid bearer credential")
        raise AuthenticationError("Invalid or expired credential")
    return user_id
