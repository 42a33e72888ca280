"""Billing API endpoints — checkout and subscription status."""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.billing.checkout import start_checkout
from app.billing.dependencies import has_active_subscription
from app.billing.errors import AlreadySubscribedError, BillingNotConfiguredError
from app.models.subscription import SubscriptionStatus
from app.models.user import User
from app.schemas.billing import CheckoutResponse, SubscriptionResponse
from app.services.subscription_service import get_subscription_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/billing", tags=["billing"])


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SubscriptionResponse:
    """Return the caller's subscription record."""
    subscription = await get_subscription_for_user(db, current_user.id)
    if subscription is None:
        return SubscriptionResponse(status=SubscriptionStatus.INACTIVE)

    response = SubscriptionResponse.model_validate(subscription)
    response.is_active = has_active_subscription(subscription)
    return response


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CheckoutResponse:
    """Start a subscription checkout (or a simulated one in dev billing mode)."""
    try:
        result = await start_checkout(db, current_user)
    except AlreadySubscribedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except BillingNotConfiguredError as e:
        logger.error("Checkout requested but Stripe is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e
    except stripe.StripeError as e:
        logger.error("Stripe checkout error for user %s: %s", current_user.id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e

    return CheckoutResponse(url=result.url, dev_mode=result.dev_mode)
