"""Async Stripe API wrapper for TubeShelf."""

import logging

import stripe
from stripe import StripeClient

from app.config import settings

logger = logging.getLogger(__name__)


def get_stripe_client() -> StripeClient:
    """Create a StripeClient instance with async HTTP support."""
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


async def find_customer_by_email(email: str) -> stripe.Customer | None:
    """Return the first Stripe customer registered with ``email``, if any."""
    client = get_stripe_client()
    customers = await client.v1.customers.list_async(params={"email": email, "limit": 1})
    return customers.data[0] if customers.data else None


async def create_customer(email: str, name: str | None = None) -> stripe.Customer:
    """Create a Stripe customer for an account email."""
    client = get_stripe_client()
    params: dict = {"email": email}
    if name:
        params["name"] = name
    customer = await client.v1.customers.create_async(params=params)
    logger.info("Created Stripe customer %s for %s", customer.id, email)
    return customer


async def get_or_create_customer(email: str, name: str | None = None) -> stripe.Customer:
    """Look up a Stripe customer by email, creating one when none exists."""
    customer = await find_customer_by_email(email)
    if customer is not None:
        return customer
    return await create_customer(email, name)


async def create_checkout_session(
    customer_id: str,
    price_id: str,
    user_id: str,
    success_url: str,
    cancel_url: str,
) -> stripe.checkout.Session:
    """Create a subscription-mode Checkout Session.

    ``user_id`` travels as opaque metadata and comes back in the
    ``checkout.session.completed`` webhook.
    """
    client = get_stripe_client()
    logger.info(
        "Creating checkout session for customer %s, price %s",
        customer_id,
        price_id,
    )
    return await client.v1.checkout.sessions.create_async(
        params={
            "mode": "subscription",
            "customer": customer_id,
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": {"userId": user_id},
        }
    )


async def get_subscription(subscription_id: str) -> stripe.Subscription:
    """Retrieve a Stripe subscription by ID."""
    client = get_stripe_client()
    return await client.v1.subscriptions.retrieve_async(subscription_id)


def construct_webhook_event(payload: bytes, sig_header: str) -> stripe.Event:
    """Verify the signature and parse a webhook payload.

    Fails closed: an unset webhook secret never verifies.

    Raises:
        stripe.SignatureVerificationError: Bad, missing or unverifiable signature.
        ValueError: Payload is not valid JSON.
    """
    if not settings.stripe_webhook_secret:
        raise stripe.SignatureVerificationError("Webhook secret is not configured", sig_header)
    client = get_stripe_client()
    return client.construct_event(payload, sig_header, settings.stripe_webhook_secret)
