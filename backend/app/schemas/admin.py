"""Pydantic v2 response schemas for the admin account listing."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.models.subscription import SubscriptionStatus
from app.models.user import UserRole


class AccountSummaryResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str | None = None
    role: UserRole
    created_at: datetime
    subscription_status: SubscriptionStatus | None = None
    current_period_end: datetime | None = None
    stripe_customer_id: str | None = None
    video_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class AccountListResponse(BaseModel):
    accounts: list[AccountSummaryResponse]
    total: int
