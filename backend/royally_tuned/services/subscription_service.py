"""Subscription service: the writers of a user's subscription status.

Status is written independently by the Stripe webhooks and by the on-demand
verify call. Each write
goes to both the identity provider's ``app_metadata`` (raw value) and the
``profiles`` row (mapped value), tagged with its source and time. Whichever
writer ran last wins.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.billing.status import map_stripe_status
from royally_tuned.billing.stripe_client import find_customer_id_by_email, get_latest_subscription
from royally_tuned.identity.admin import (
    IdentityError,
    get_user_by_id,
    merge_app_metadata,
    update_app_metadata,
)
from royally_tuned.models.profile import Profile

logger = logging.getLogger(__name__)

SOURCE_CHECKOUT_WEBHOOK = "checkout_webhook"
SOURCE_SUBSCRIPTION_WEBHOOK = "subscription_webhook"
SOURCE_VERIFY = "verify"


@dataclass
class VerifyResult:
    """Outcome of a verify-subscription call."""

    status: str
    stripe_customer_id: str | None = None
    profile_updated: bool = False
    message: str | None = None


def _utcnow() -> datetime:
    """Naive UTC now, matching the DB column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


async def get_profile_status(db: AsyncSession, user_id: uuid.UUID) -> tuple[str | None, str | None]:
    """Return the profile's mapped status and the writer that stored it.

    Both are ``None`` when the user has no profile row yet.
    """
    profile = await db.get(Profile, user_id)
    if profile is None:
        return None, None
    return profile.subscription_status, profile.subscription_status_source


async def upsert_profile(
    db: AsyncSession,
    user_id: uuid.UUID,
    email: str,
    subscription_status: str | None = None,
    stripe_customer_id: str | None = None,
    source: str | None = None,
) -> Profile:
    """Insert or update the profile row keyed by user ID."""
    profile = await db.get(Profile, user_id)
    if profile is None:
        profile = Profile(id=user_id, email=email)
        db.add(profile)
    else:
        profile.email = email

    if stripe_customer_id:
        profile.stripe_customer_id = stripe_customer_id
    if subscription_status:
        profile.subscription_status = subscription_status
        profile.subscription_status_source = source
        profile.subscription_status_updated_at = _utcnow()

    await db.flush()
    return profile


async def record_subscription_status(
    db: AsyncSession,
    user_id: uuid.UUID,
    fields: dict[str, Any],
    source: str,
) -> Profile | None:
    """Write raw status fields to app_metadata and the mapped status to the profile.

    ``fields`` may carry ``stripe_customer_id`` and ``subscription_status``
    (a Stripe status such as ``active``). Identity-provider failures are
    logged; the profile is only upserted when the user's email is known
    because the column is NOT NULL.
    """
    email: str | None = None
    try:
        user = await get_user_by_id(user_id)
    except IdentityError as e:
        logger.error("Failed to fetch user %s before status update: %s", user_id, e)
    else:
        email = user.email
        try:
            await update_app_metadata(user_id, merge_app_metadata(user, fields))
        except IdentityError as e:
            logger.error("Failed to update app_metadata for user %s: %s", user_id, e)

    raw_status = fields.get("subscription_status")
    mapped_status = map_stripe_status(raw_status) if raw_status else None
    customer_id = fields.get("stripe_customer_id")

    if not email:
        logger.warning("Skipping profile upsert, no email available for user %s", user_id)
        return None
    if not mapped_status and not customer_id:
        return None

    profile = await upsert_profile(
        db,
        user_id=user_id,
        email=email,
        subscription_status=mapped_status,
        stripe_customer_id=customer_id,
        source=source,
    )
    logger.info(
        "Recorded subscription status for user %s: %s -> %s (source=%s)",
        user_id,
        raw_status,
        mapped_status,
        source,
    )
    return profile


async def verify_subscription(db: AsyncSession, user_id: uuid.UUID) -> VerifyResult:
    """Ask Stripe directly for the user's subscription and store the result.

    Raises ``UserNotFoundError`` when the identity provider has no such user.
    """
    user = await get_user_by_id(user_id)
    email = user.email

    customer_id = user.stripe_customer_id
    if not customer_id and email:
        customer_id = await find_customer_id_by_email(email)

    if not customer_id:
        await upsert_profile(
            db,
            user_id=user_id,
            email=email or "",
            subscription_status="free",
            source=SOURCE_VERIFY,
        )
        logger.info("No Stripe customer for user %s, marked free", user_id)
        return VerifyResult(
            status="free",
            profile_updated=True,
            message="No Stripe subscription found",
        )

    subscription = await get_latest_subscription(customer_id)
    status = map_stripe_status(subscription.status) if subscription is not None else "free"

    await update_app_metadata(
        user_id,
        merge_app_metadata(user, {"stripe_customer_id": customer_id, "subscription_status": status}),
    )
    await upsert_profile(
        db,
        user_id=user_id,
        email=email or "",
        subscription_status=status,
        stripe_customer_id=customer_id,
        source=SOURCE_VERIFY,
    )
    logger.info("Verified subscription for user %s: %s (customer %s)", user_id, status, customer_id)
    return VerifyResult(status=status, stripe_customer_id=customer_id, profile_updated=True)
