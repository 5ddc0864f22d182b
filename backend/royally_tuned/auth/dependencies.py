"""FastAPI authentication dependencies for route protection."""

import uuid
from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from royally_tuned.auth.jwt import decode_token

# auto_error=False so a missing header yields our 401 body instead of a 403
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """The signed-in user as described by their access token."""

    id: uuid.UUID
    email: str | None
    app_metadata: dict[str, Any] = field(default_factory=dict)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> CurrentUser:
    """Validate the Bearer token and return the authenticated user.

    Raises:
        HTTPException 401: If the token is missing, invalid, expired, or has no subject.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise credentials_exception from None

    sub: str | None = payload.get("sub")
    if sub is None:
        raise credentials_exception

    try:
        user_id = uuid.UUID(sub)
    except ValueError:
        raise credentials_exception from None

    return CurrentUser(
        id=user_id,
        email=payload.get("email"),
        app_metadata=dict(payload.get("app_metadata") or {}),
    )
