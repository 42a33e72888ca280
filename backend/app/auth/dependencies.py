"""FastAPI authentication dependencies for route protection."""

import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import decode_token
from app.database import get_db
from app.models.user import User

# Cookie used by the server-rendered pages, set on login/signup.
ACCESS_TOKEN_COOKIE = "access_token"

# Missing credentials are reported as 401 by get_current_user, not 403 by the scheme.
_bearer_scheme = HTTPBearer(auto_error=False)


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Prefer the Authorization header; fall back to the session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


async def _load_user_from_token(db: AsyncSession, token: str) -> User | None:
    """Return the user an access token refers to, or None if it is unusable."""
    try:
        payload = decode_token(token)
    except JWTError:
        return None

    # Only accept access tokens, not refresh tokens
    if payload.get("type") != "access":
        return None

    sub: str | None = payload.get("sub")
    if sub is None:
        return None

    try:
        user_id = uuid.UUID(sub)
    except ValueError:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return the authenticated user.

    Raises:
        HTTPException 401: If no token is present, or it is invalid, expired,
            of the wrong type, or refers to an unknown user.
    """
    token = _extract_token(request, credentials)
    user = await _load_user_from_token(db, token) if token else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Like :func:`get_current_user` but returns ``None`` instead of raising.

    Used by the server-rendered pages, which redirect rather than error.
    """
    token = _extract_token(request, credentials)
    if not token:
        return None
    return await _load_user_from_token(db, token)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Return the current user only if they hold the ADMIN role.

    Raises:
        HTTPException 403: For any non-admin account.
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
