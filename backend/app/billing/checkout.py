"""Checkout initiator — start a billing relationship for an account."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.billing.dependencies import has_active_subscription
from app.billing.errors import AlreadySubscribedError, BillingNotConfiguredError
from app.billing.stripe_client import create_checkout_session, get_or_create_customer
from app.config import settings
from app.models.subscription import SubscriptionStatus
from app.models.user import User
from app.services.subscription_service import get_subscription_for_user, upsert_subscription

logger = logging.getLogger(__name__)

DEV_PRICE_ID = "price_dev_mode"


@dataclass(frozen=True)
class CheckoutResult:
    """Where to send the browser next."""

    url: str
    dev_mode: bool = False


async def start_checkout(db: AsyncSession, user: User) -> CheckoutResult:
    """Open a checkout for ``user``.

    With ``BILLING_DEV_MODE`` on, the subscription is activated locally and
    Stripe is never called.

    Raises:
        AlreadySubscribedError: The user's subscription is already ACTIVE.
        BillingNotConfiguredError: Stripe keys or price are missing.
        stripe.StripeError: Stripe rejected a call.
    """
    existing = await get_subscription_for_user(db, user.id)
    if has_active_subscription(existing):
        raise AlreadySubscribedError()

    if settings.billing_dev_mode:
        return await _simulate_checkout(db, user)

    if not settings.stripe_configured:
        raise BillingNotConfiguredError()

    customer = await get_or_create_customer(user.email, user.name)
    session = await create_checkout_session(
        customer_id=customer.id,
        price_id=settings.stripe_price_id,
        user_id=str(user.id),
        success_url=f"{settings.frontend_url}/dashboard?success=true",
        cancel_url=f"{settings.frontend_url}/dashboard?canceled=true",
    )

    # Attach the customer; an existing row keeps its status until the webhook lands.
    await upsert_subscription(
        db,
        user.id,
        create={"stripe_customer_id": customer.id, "status": SubscriptionStatus.INACTIVE},
        update_values={"stripe_customer_id": customer.id},
    )
    logger.info("Checkout session %s opened for user %s", session.id, user.id)
    return CheckoutResult(url=session.url, dev_mode=False)


async def _simulate_checkout(db: AsyncSession, user: User) -> CheckoutResult:
    """Activate a synthetic subscription without touching Stripe."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    values = {
        "status": SubscriptionStatus.ACTIVE,
        "stripe_customer_id": f"cus_dev_{user.id}",
        "stripe_subscription_id": f"sub_dev_{user.id}_{int(time.time())}",
        "stripe_price_id": DEV_PRICE_ID,
        "current_period_start": now,
        "current_period_end": now + timedelta(days=settings.dev_subscription_days),
    }
    await upsert_subscription(db, user.id, create=values)
    logger.warning("Development billing mode: activated simulated subscription for user %s", user.id)
    return CheckoutResult(
        url=f"{settings.frontend_url}/dashboard?success=true&dev_mode=true",
        dev_mode=True,
    )
