"""Pydantic v2 response schemas for billing endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.models.subscription import SubscriptionStatus


class CheckoutResponse(BaseModel):
    """Where the browser goes next; ``dev_mode`` marks a simulated checkout."""

    url: str
    dev_mode: bool = False


class SubscriptionResponse(BaseModel):
    """The caller's subscription record (INACTIVE placeholder if none exists)."""

    status: SubscriptionStatus
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    stripe_price_id: str | None = None
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    is_active: bool = False

    model_config = ConfigDict(from_attributes=True)


class WebhookAck(BaseModel):
    """Receipt returned to Stripe."""

    received: bool = True
    status: str
