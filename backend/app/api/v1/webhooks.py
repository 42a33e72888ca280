"""Stripe webhook endpoint — verifies and reconciles Stripe events.

Error contract (Stripe redelivers on any non-2xx):
- 400: missing/invalid signature, unparsable payload, unusable metadata.
- 404: subscription update for a customer with no local record.
- 500: anything else after verification; the transaction is rolled back.
Redelivery is safe because every handler is an upsert or a keyed update.
"""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.billing.errors import SubscriptionNotFoundError, WebhookEventError
from app.billing.stripe_client import construct_webhook_event
from app.billing.webhooks import dispatch_event
from app.schemas.billing import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)) -> WebhookAck:
    """Receive and process Stripe webhook events."""
    # 1. Read raw body (MUST be raw bytes for signature verification)
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        logger.warning("Webhook request without signature header")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No signature found",
        )

    # 2. Verify signature; nothing is written before this succeeds
    try:
        event = construct_webhook_event(payload, sig_header)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature",
        ) from e
    except ValueError as e:
        logger.warning("Invalid webhook payload")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload",
        ) from e

    # 3. Dispatch; roll back everything on failure so redelivery starts clean
    try:
        outcome = await dispatch_event(db, event)
        await db.commit()
    except WebhookEventError as e:
        await db.rollback()
        logger.error("Rejected webhook event %s: %s", event.id, e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid event metadata",
        ) from e
    except SubscriptionNotFoundError as e:
        await db.rollback()
        logger.error("Webhook event %s: %s", event.id, e)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Subscription not found",
        ) from e
    except Exception as e:
        await db.rollback()
        logger.exception("Error processing webhook event %s", event.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        ) from e

    return WebhookAck(status=outcome)
