"""Admin reporting — account overview with subscription and library size."""

import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.subscription import Subscription, SubscriptionStatus
from app.models.user import User, UserRole
from app.models.video import Video


@dataclass(frozen=True)
class AccountSummary:
    """One row of the admin listing."""

    id: uuid.UUID
    email: str
    name: str | None
    role: UserRole
    created_at: datetime
    subscription_status: SubscriptionStatus | None
    current_period_end: datetime | None
    stripe_customer_id: str | None
    video_count: int


async def list_accounts(db: AsyncSession) -> list[AccountSummary]:
    """Every account, newest first, in a single query."""
    video_counts = (
        select(Video.user_id, func.count(Video.id).label("video_count"))
        .group_by(Video.user_id)
        .subquery()
    )
    stmt = (
        select(
            User.id,
            User.email,
            User.name,
            User.role,
            User.created_at,
            Subscription.status,
            Subscription.current_period_end,
            Subscription.stripe_customer_id,
            func.coalesce(video_counts.c.video_count, 0),
        )
        .outerjoin(Subscription, Subscription.user_id == User.id)
        .outerjoin(video_counts, video_counts.c.user_id == User.id)
        .order_by(User.created_at.desc(), User.email)
    )
    result = await db.execute(stmt)
    return [AccountSummary(*row) for row in result.all()]
