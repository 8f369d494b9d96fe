"""Authentication helpers and FastAPI security dependency.

`get_current_user` accepts a bearer JWT whose session row still exists.
When `TRUST_USER_HEADER` is enabled it also accepts an `X-User-Id`
header set by an authenticating gateway in front of the API.
"""

from datetime import datetime, timezone
from typing import Optional

import jwt
from fastapi import Depends, Header, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from . import models, repositories
from .config import settings
from .database import get_session
from .errors import AuthError

bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Returns the decoded payload or raises `AuthError` on failure.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("token expired")
    except jwt.PyJWTError:
        raise AuthError("invalid token")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    x_user_id: Optional[str] = Header(default=None),
    session: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the authenticated user."""
    users = repositories.UserRepository(session)
    if credentials is None:
        if settings.TRUST_USER_HEADER and x_user_id:
            user = users.get(int(x_user_id)) if x_user_id.isdigit() else None
            if not user:
                raise AuthError("user not found")
            return user
        raise AuthError("authentication required")

    token = credentials.credentials
    payload = decode_token(token)
    user_id = payload.get("user_id")
    if not user_id:
        raise AuthError("invalid token payload")
    stored = repositories.SessionRepository(session).get_by_token(token)
    if not stored or _as_utc(stored.expires_at) <= datetime.now(timezone.utc):
        raise AuthError("session expired or revoked")
    user = users.get(user_id)
    if not user:
        raise AuthError("user not found")
    return user


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme)) -> str:
    if credentials is None:
        raise AuthError("authentication required")
    return credentials.credentials
