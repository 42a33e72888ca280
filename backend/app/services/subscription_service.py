"""Subscription service — persistence primitives for the local billing mirror.

Every write here is a single SQL statement (``INSERT ... ON CONFLICT`` or a
conditional ``UPDATE``) so that concurrent webhook deliveries for the same
account converge without any in-process locking.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.subscription import Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _dialect_insert(db: AsyncSession):
    """Pick the dialect-specific ``insert`` that supports ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    try:
        return _UPSERT_INSERTS[dialect]
    except KeyError:
        raise RuntimeError(f"Subscription upsert is not supported on dialect {dialect!r}") from None


async def get_subscription_for_user(db: AsyncSession, user_id: uuid.UUID) -> Subscription | None:
    """Fetch the user's subscription record, bypassing any stale identity-map copy."""
    result = await db.execute(
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def upsert_subscription(
    db: AsyncSession,
    user_id: uuid.UUID,
    create: dict[str, Any],
    update_values: dict[str, Any] | None = None,
) -> Subscription:
    """Create-or-update the subscription row keyed by ``user_id``.

    Args:
        create: Column values for a brand new row.
        update_values: Column values applied when a row already exists.
            Defaults to ``create``.

    Returns:
        The persisted row, refreshed from the database.
    """
    insert = _dialect_insert(db)
    update_values = dict(create if update_values is None else update_values)
    update_values["updated_at"] = func.now()

    stmt = (
        insert(Subscription)
        .values(user_id=user_id, **create)
        .on_conflict_do_update(index_elements=[Subscription.user_id], set_=update_values)
        .returning(Subscription)
    )
    result = await db.execute(stmt, execution_options={"populate_existing": True})
    subscription = result.scalar_one()
    logger.info(
        "Upserted subscription for user %s: status=%s customer=%s",
        user_id,
        subscription.status.value,
        subscription.stripe_customer_id,
    )
    return subscription


async def update_by_stripe_customer(
    db: AsyncSession, stripe_customer_id: str, **values: Any
) -> int:
    """Apply ``values`` to every subscription with this customer ID.

    Returns:
        Number of rows changed. Zero is a valid outcome.
    """
    result = await db.execute(
        update(Subscription)
        .where(Subscription.stripe_customer_id == stripe_customer_id)
        .values(**values)
    )
    return result.rowcount or 0


async def set_status_by_stripe_customer(
    db: AsyncSession, stripe_customer_id: str, status: SubscriptionStatus
) -> int:
    """Bulk status change by customer ID; period fields are left untouched."""
    affected = await update_by_stripe_customer(db, stripe_customer_id, status=status)
    logger.info(
        "Set status=%s on %d subscription(s) for customer %s",
        status.value,
        affected,
        stripe_customer_id,
    )
    return affected
