"""Access guard — gate premium functionality on subscription status."""

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.user import User
from app.services.subscription_service import get_subscription_for_user


def has_active_subscription(subscription: Subscription | None) -> bool:
    """True iff a record exists and its status is exactly ACTIVE.

    ``current_period_end`` is deliberately not consulted.
    """
    return subscription is not None and subscription.status == SubscriptionStatus.ACTIVE


async def require_active_subscription(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> User:
    """Return the current user if subscribed, else raise 403."""
    subscription = await get_subscription_for_user(db, user.id)
    if not has_active_subscription(subscription):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Active subscription required",
        )
    return user
