"""Stripe webhook event handlers — reconcile local subscriptions with Stripe.

Each handler is idempotent: replaying the same event leaves the same row
state behind. Handlers return the number of subscription rows written.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from app.billing.errors import SubscriptionNotFoundError, WebhookEventError
from app.billing.stripe_client import get_subscription
from app.models.subscription import SubscriptionStatus
from app.models.user import User
from app.services.subscription_service import (
    set_status_by_stripe_customer,
    update_by_stripe_customer,
    upsert_subscription,
)

logger = logging.getLogger(__name__)

STRIPE_STATUS_MAP: dict[str, SubscriptionStatus] = {
    "active": SubscriptionStatus.ACTIVE,
    "past_due": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "unpaid": SubscriptionStatus.UNPAID,
}


def map_stripe_status(stripe_status: str | None) -> SubscriptionStatus:
    """Map a Stripe subscription status onto the local enum (unknown → INACTIVE)."""
    return STRIPE_STATUS_MAP.get(stripe_status or "", SubscriptionStatus.INACTIVE)


def _ts_to_naive(ts: int | None) -> datetime | None:
    """Convert Stripe Unix timestamp to naive UTC datetime."""
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def _field(obj: Any, name: str) -> Any:
    """Read a field from a Stripe object or plain mapping, None if absent.

    Current Stripe SDKs no longer subclass ``dict``, so ``.get`` is not
    available on their objects; bracket access works on both.
    """
    if obj is None:
        return None
    try:
        return obj[name]
    except (KeyError, AttributeError):
        return None
    except TypeError:
        return getattr(obj, name, None)


def _object_id(value: Any) -> str | None:
    """Stripe references may be a bare ID or an expanded object."""
    if value is None or isinstance(value, str):
        return value
    return _field(value, "id")


def _get_first_item(stripe_sub: stripe.Subscription):
    """Get the first subscription item, using bracket notation to avoid
    collision with Python dict .items() on Stripe objects.
    """
    try:
        sub_items = stripe_sub["items"]
    except (KeyError, AttributeError):
        return None
    data = _field(sub_items, "data") if sub_items else None
    return data[0] if data else None


def _get_price_id(stripe_sub: stripe.Subscription) -> str | None:
    item = _get_first_item(stripe_sub)
    if item is None:
        return None
    return _object_id(_field(item, "price"))


def _get_period(stripe_sub: stripe.Subscription) -> tuple[datetime | None, datetime | None]:
    """Extract current period start/end.

    Older Stripe API versions put the period on the subscription, newer ones
    on each subscription item; the subscription-level value wins.
    """
    start = _field(stripe_sub, "current_period_start")
    end = _field(stripe_sub, "current_period_end")
    if start is None or end is None:
        item = _get_first_item(stripe_sub)
        if item is not None:
            start = start if start is not None else _field(item, "current_period_start")
            end = end if end is not None else _field(item, "current_period_end")
    return _ts_to_naive(start), _ts_to_naive(end)


async def _resolve_metadata_user(db: AsyncSession, session: Any) -> User:
    """Return the account named by ``metadata.userId`` on a checkout session."""
    raw_user_id = _field(_field(session, "metadata"), "userId")
    if not raw_user_id:
        raise WebhookEventError("No userId in session metadata")

    try:
        user_id = uuid.UUID(str(raw_user_id))
    except ValueError:
        raise WebhookEventError(f"Malformed userId in session metadata: {raw_user_id!r}") from None

    user = await db.get(User, user_id)
    if user is None:
        raise WebhookEventError(f"Unknown userId in session metadata: {user_id}")
    return user


async def handle_checkout_session_completed(db: AsyncSession, event: stripe.Event) -> int:
    """Handle checkout.session.completed — upsert the user's record to ACTIVE."""
    session = event.data.object
    user = await _resolve_metadata_user(db, session)

    subscription_id = _object_id(_field(session, "subscription"))
    if not subscription_id:
        raise WebhookEventError(f"Checkout session {_field(session, 'id')} has no subscription")

    stripe_sub = await get_subscription(subscription_id)
    period_start, period_end = _get_period(stripe_sub)
    values = {
        "stripe_subscription_id": _field(stripe_sub, "id") or subscription_id,
        "stripe_customer_id": _object_id(_field(stripe_sub, "customer")) or _object_id(_field(session, "customer")),
        "stripe_price_id": _get_price_id(stripe_sub),
        "status": SubscriptionStatus.ACTIVE,
        "current_period_start": period_start,
        "current_period_end": period_end,
    }
    await upsert_subscription(db, user.id, create=values)
    logger.info("Subscription activated for user %s (stripe %s)", user.id, subscription_id)
    return 1


async def handle_subscription_updated(db: AsyncSession, event: stripe.Event) -> int:
    """Handle customer.subscription.updated — sync status and billing period.

    Never creates a row: an unknown customer raises SubscriptionNotFoundError.
    """
    stripe_sub = event.data.object
    customer_id = _object_id(_field(stripe_sub, "customer"))
    if not customer_id:
        raise WebhookEventError(f"Subscription {_field(stripe_sub, 'id')} has no customer")

    status = map_stripe_status(_field(stripe_sub, "status"))
    values: dict[str, Any] = {"status": status}
    period_start, period_end = _get_period(stripe_sub)
    if period_start is not None:
        values["current_period_start"] = period_start
    if period_end is not None:
        values["current_period_end"] = period_end

    affected = await update_by_stripe_customer(db, customer_id, **values)
    if affected == 0:
        raise SubscriptionNotFoundError(f"No subscription found for customer {customer_id}")

    logger.info("Subscription updated for customer %s: %s", customer_id, status.value)
    return affected


async def handle_subscription_deleted(db: AsyncSession, event: stripe.Event) -> int:
    """Handle customer.subscription.deleted — mark CANCELED, keep the period."""
    stripe_sub = event.data.object
    customer_id = _object_id(_field(stripe_sub, "customer"))
    if not customer_id:
        logger.warning("Subscription deleted event %s has no customer, skipping", event.id)
        return 0

    affected = await set_status_by_stripe_customer(db, customer_id, SubscriptionStatus.CANCELED)
    logger.info("Subscription canceled for customer %s (%d row(s))", customer_id, affected)
    return affected


async def handle_invoice_payment_failed(db: AsyncSession, event: stripe.Event) -> int:
    """Handle invoice.payment_failed — mark PAST_DUE."""
    invoice = event.data.object
    customer_id = _object_id(_field(invoice, "customer"))
    if not customer_id:
        logger.warning("Invoice %s has no customer, skipping payment failure", _field(invoice, "id"))
        return 0

    affected = await set_status_by_stripe_customer(db, customer_id, SubscriptionStatus.PAST_DUE)
    logger.info("Payment failed for customer %s (%d row(s))", customer_id, affected)
    return affected


EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "customer.subscription.updated": handle_subscription_updated,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.payment_failed": handle_invoice_payment_failed,
}


async def dispatch_event(db: AsyncSession, event: stripe.Event) -> str:
    """Route a verified event to its handler.

    Returns:
        ``"processed"`` when a handler ran, ``"ignored"`` for unknown types.
    """
    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.info("Unhandled webhook event type: %s", event.type)
        return "ignored"

    logger.info("Processing webhook event: %s (id=%s)", event.type, event.id)
    await handler(db, event)
    return "processed"
