"""Tests for POST /api/v1/webhooks/stripe — signature checks and error contract."""

import hashlib
import hmac
import json
import time
import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
import stripe
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.subscription import Subscription, SubscriptionStatus
from app.services.subscription_service import get_subscription_for_user

WEBHOOK_URL = "/api/v1/webhooks/stripe"
WEBHOOK_SECRET = "whsec_test_secret"


class _StripeObj(SimpleNamespace):
    def __getitem__(self, key: str):
        return getattr(self, key)


def _make_event(event_type: str, data_object: dict) -> _StripeObj:
    return _StripeObj(
        type=event_type,
        id=f"evt_test_{uuid.uuid4().hex[:8]}",
        data=_StripeObj(object=_StripeObj(**data_object)),
    )


def _sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header the same way Stripe does."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "stripe_secret_key", "sk_test_dummy")
    monkeypatch.setattr(settings, "stripe_webhook_secret", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


async def _count_subscriptions(db_session: AsyncSession) -> int:
    return await db_session.scalar(select(func.count(Subscription.id)))


# ---------------------------------------------------------------------------
# Signature verification (real stripe verification, no mocks)
# ---------------------------------------------------------------------------


class TestSignature:
    """Nothing is processed before the signature verifies."""

    async def test_missing_signature(self, client: AsyncClient, webhook_secret):
        response = await client.post(WEBHOOK_URL, content=b"{}")
        assert response.status_code == 400
        assert response.json() == {"error": "No signature found"}

    async def test_invalid_signature(self, client: AsyncClient, webhook_secret):
        payload = json.dumps({"id": "evt_1", "object": "event", "type": "customer.created"}).encode()
        response = await client.post(
            WEBHOOK_URL,
            content=payload,
            headers={"stripe-signature": _sign(payload, secret="whsec_wrong")},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid signature"}

    async def test_unconfigured_secret_never_verifies(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "stripe_webhook_secret", "")
        payload = b'{"id": "evt_1", "object": "event", "type": "customer.created"}'
        response = await client.post(
            WEBHOOK_URL,
            content=payload,
            headers={"stripe-signature": _sign(payload)},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid signature"}

    async def test_tampered_payload_writes_nothing(
        self, client: AsyncClient, db_session: AsyncSession, webhook_secret, create_user
    ):
        user = await create_user()
        original = json.dumps({"id": "evt_1", "object": "event", "type": "customer.created"}).encode()
        tampered = json.dumps({
            "id": "evt_1",
            "object": "event",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "metadata": {"userId": str(user.id)}}},
        }).encode()

        response = await client.post(
            WEBHOOK_URL,
            content=tampered,
            headers={"stripe-signature": _sign(original)},
        )

        assert response.status_code == 400
        assert await _count_subscriptions(db_session) == 0

    async def test_valid_signature_unhandled_type_acknowledged(self, client: AsyncClient, webhook_secret):
        payload = json.dumps({
            "id": "evt_valid",
            "object": "event",
            "type": "customer.created",
            "data": {"object": {"id": "cus_new", "object": "customer"}},
        }).encode()

        response = await client.post(
            WEBHOOK_URL,
            content=payload,
            headers={"stripe-signature": _sign(payload)},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True, "status": "ignored"}

    async def test_signed_checkout_completed_activates(
        self, client: AsyncClient, db_session: AsyncSession, webhook_secret, create_user
    ):
        user = await create_user()
        user_id = user.id
        payload = json.dumps({
            "id": "evt_signed_checkout",
            "object": "event",
            "type": "checkout.session.completed",
            "data": {"object": {
                "id": "cs_signed_1",
                "object": "checkout.session",
                "customer": "cus_signed_1",
                "subscription": "sub_signed_1",
                "metadata": {"userId": str(user_id)},
            }},
        }).encode()
        stripe_sub = stripe.Subscription.construct_from(
            {
                "id": "sub_signed_1",
                "object": "subscription",
                "customer": "cus_signed_1",
                "status": "active",
                "items": {"object": "list", "data": [{
                    "id": "si_signed_1",
                    "object": "subscription_item",
                    "price": {"id": "price_1", "object": "price"},
                    "current_period_start": 1706745600,
                    "current_period_end": 1709251200,
                }]},
            },
            "sk_test_dummy",
        )

        with patch("app.billing.webhooks.get_subscription", new_callable=AsyncMock, return_value=stripe_sub):
            response = await client.post(
                WEBHOOK_URL,
                content=payload,
                headers={"stripe-signature": _sign(payload)},
            )

        assert response.status_code == 200
        assert response.json() == {"received": True, "status": "processed"}
        subscription = await get_subscription_for_user(db_session, user_id)
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.stripe_customer_id == "cus_signed_1"
        assert subscription.stripe_price_id == "price_1"


# ---------------------------------------------------------------------------
# Dispatch and error mapping (signature verification patched out)
# ---------------------------------------------------------------------------


class TestDispatch:
    """Processing-stage outcomes and their status codes."""

    async def _post(self, client: AsyncClient, event) -> object:
        with patch("app.api.v1.webhooks.construct_webhook_event", return_value=event):
            return await client.post(
                WEBHOOK_URL,
                content=b"{}",
                headers={"stripe-signature": "t=1,v1=patched"},
            )

    async def test_checkout_completed_activates(
        self, client: AsyncClient, db_session: AsyncSession, create_user
    ):
        user = await create_user()
        user_id = user.id
        event = _make_event("checkout.session.completed", {
            "id": "cs_1",
            "customer": "cus_hook_1",
            "subscription": "sub_hook_1",
            "metadata": {"userId": str(user_id)},
        })
        fake_sub = _StripeObj(
            id="sub_hook_1",
            customer="cus_hook_1",
            status="active",
            current_period_start=1706745600,
            current_period_end=1709251200,
            items=_StripeObj(data=[_StripeObj(price=_StripeObj(id="price_1"))]),
        )

        with patch("app.billing.webhooks.get_subscription", new_callable=AsyncMock, return_value=fake_sub):
            response = await self._post(client, event)
            assert response.status_code == 200
            assert response.json() == {"received": True, "status": "processed"}

            # Redelivery is harmless
            response = await self._post(client, event)
            assert response.status_code == 200

        assert await _count_subscriptions(db_session) == 1
        subscription = await get_subscription_for_user(db_session, user_id)
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.stripe_subscription_id == "sub_hook_1"

    async def test_unknown_metadata_user_is_400(self, client: AsyncClient, db_session: AsyncSession):
        event = _make_event("checkout.session.completed", {
            "id": "cs_1",
            "subscription": "sub_1",
            "metadata": {"userId": str(uuid.uuid4())},
        })
        response = await self._post(client, event)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid event metadata"}
        assert await _count_subscriptions(db_session) == 0

    async def test_update_for_unknown_customer_is_404(self, client: AsyncClient, db_session: AsyncSession):
        event = _make_event("customer.subscription.updated", {
            "id": "sub_1",
            "customer": "cus_stranger",
            "status": "active",
        })
        response = await self._post(client, event)

        assert response.status_code == 404
        assert await _count_subscriptions(db_session) == 0

    async def test_provider_failure_is_500_and_rolled_back(
        self, client: AsyncClient, db_session: AsyncSession, create_user
    ):
        user = await create_user()
        event = _make_event("checkout.session.completed", {
            "id": "cs_1",
            "subscription": "sub_1",
            "metadata": {"userId": str(user.id)},
        })

        with patch(
            "app.billing.webhooks.get_subscription",
            new_callable=AsyncMock,
            side_effect=stripe.APIConnectionError("Stripe unreachable"),
        ):
            response = await self._post(client, event)

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook processing failed"}
        assert await _count_subscriptions(db_session) == 0

    async def test_deleted_for_unknown_customer_is_ok(self, client: AsyncClient):
        event = _make_event("customer.subscription.deleted", {"id": "sub_1", "customer": "cus_nobody"})
        response = await self._post(client, event)
        assert response.status_code == 200
        assert response.json()["status"] == "processed"

    async def test_invalid_payload_is_400(self, client: AsyncClient):
        with patch(
            "app.api.v1.webhooks.construct_webhook_event",
            side_effect=ValueError("bad json"),
        ):
            response = await client.post(
                WEBHOOK_URL,
                content=b"not json",
                headers={"stripe-signature": "t=1,v1=patched"},
            )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid payload"}
