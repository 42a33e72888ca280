"""Pydantic v2 request/response schemas for authentication endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.auth.passwords import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH
from app.models.subscription import SubscriptionStatus
from app.models.user import UserRole

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Schema for account registration."""

    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    name: str | None = Field(None, max_length=255)


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Schema for token refresh."""

    refresh_token: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """JWT token pair returned on successful authentication."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Public account information. Never includes the password hash."""

    id: uuid.UUID
    email: str
    name: str | None = None
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MeResponse(UserResponse):
    """The caller's own profile plus subscription status."""

    subscription_status: SubscriptionStatus | None = None


class AuthResponse(BaseModel):
    """Combined user + tokens returned on signup/login."""

    user: UserResponse
    tokens: TokenResponse
