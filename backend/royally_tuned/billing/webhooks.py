"""Stripe webhook event handlers: record subscription lifecycle events."""

import logging
import uuid

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.services.subscription_service import (
    SOURCE_CHECKOUT_WEBHOOK,
    SOURCE_SUBSCRIPTION_WEBHOOK,
    record_subscription_status,
)

logger = logging.getLogger(__name__)


def _metadata_user_id(obj) -> str | None:
    metadata = getattr(obj, "metadata", None)
    if metadata is None or "supabase_user_id" not in metadata:
        return None
    return metadata["supabase_user_id"]


def _parse_user_id(raw: str | None) -> uuid.UUID | None:
    if not raw:
        return None
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        logger.warning("Ignoring malformed user id %r in webhook payload", raw)
        return None


async def handle_checkout_session_completed(db: AsyncSession, event: stripe.Event) -> None:
    """Handle checkout.session.completed: mark the user active right away."""
    session = event.data.object
    user_id = _parse_user_id(getattr(session, "client_reference_id", None) or _metadata_user_id(session))
    if user_id is None:
        logger.info("Checkout session %s has no user reference, skipping", session.id)
        return

    await record_subscription_status(
        db,
        user_id,
        {
            "stripe_customer_id": getattr(session, "customer", None),
            "subscription_status": "active",
        },
        source=SOURCE_CHECKOUT_WEBHOOK,
    )
    logger.info("Checkout completed: session %s activated user %s", session.id, user_id)


async def handle_subscription_changed(db: AsyncSession, event: stripe.Event) -> None:
    """Handle customer.subscription.created/updated/deleted: sync the raw Stripe status."""
    stripe_sub = event.data.object
    user_id = _parse_user_id(_metadata_user_id(stripe_sub))
    if user_id is None:
        logger.info("Subscription %s has no supabase_user_id metadata, skipping", stripe_sub.id)
        return

    await record_subscription_status(
        db,
        user_id,
        {
            "stripe_customer_id": getattr(stripe_sub, "customer", None),
            "subscription_status": stripe_sub.status,
        },
        source=SOURCE_SUBSCRIPTION_WEBHOOK,
    )
    logger.info(
        "Subscription %s (%s): user %s status=%s",
        stripe_sub.id,
        event.type,
        user_id,
        stripe_sub.status,
    )


# Map event types to handler functions
EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "customer.subscription.created": handle_subscription_changed,
    "customer.subscription.updated": handle_subscription_changed,
    "customer.subscription.deleted": handle_subscription_changed,
}
