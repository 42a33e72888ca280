"""Auth API router — signup, login, refresh, logout, me."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, rate_limit
from app.auth.dependencies import ACCESS_TOKEN_COOKIE
from app.auth.jwt import create_token_pair, decode_token
from app.auth.passwords import hash_password, verify_password
from app.config import settings
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RefreshRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from app.services.subscription_service import get_subscription_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _issue_tokens(response: Response, user: User) -> TokenResponse:
    """Create a token pair and mirror the access token into a cookie for HTML pages."""
    tokens = create_token_pair(str(user.id), user.role.value)
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        tokens["access_token"],
        max_age=settings.jwt_access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )
    return TokenResponse(**tokens)


# ---------------------------------------------------------------------------
# POST /signup
# ---------------------------------------------------------------------------


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("signup"))],
)
async def signup(body: SignupRequest, response: Response, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Register a new account with email and password.

    No subscription row is created here; it appears on the first checkout.
    """
    email = body.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already exists",
        )

    user = User(
        email=email,
        hashed_password=hash_password(body.password),
        name=body.name.strip() if body.name else None,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info("Created account %s", user.id)

    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=_issue_tokens(response, user),
    )


# ---------------------------------------------------------------------------
# POST /login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(rate_limit("login"))])
async def login(body: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Authenticate with email and password."""
    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=_issue_tokens(response, user),
    )


# ---------------------------------------------------------------------------
# POST /refresh
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, response: Response, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Exchange a valid refresh token for a new token pair."""
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(body.refresh_token)
    except JWTError:
        raise invalid from None

    if payload.get("type") != "refresh":
        raise invalid

    try:
        user_id = uuid.UUID(payload.get("sub") or "")
    except ValueError:
        raise invalid from None

    user = await db.get(User, user_id)
    if user is None:
        raise invalid

    return _issue_tokens(response, user)


# ---------------------------------------------------------------------------
# POST /logout
# ---------------------------------------------------------------------------


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout() -> Response:
    """Clear the access-token cookie. Bearer tokens simply expire."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


# ---------------------------------------------------------------------------
# GET /me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=MeResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MeResponse:
    """Return the caller's profile and subscription status."""
    subscription = await get_subscription_for_user(db, current_user.id)
    profile = UserResponse.model_validate(current_user)
    return MeResponse(
        **profile.model_dump(),
        subscription_status=subscription.status if subscription else None,
    )
