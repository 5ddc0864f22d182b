"""Post-checkout verification poller.

Webhooks can arrive seconds to minutes after checkout, or not at all. After
a ``checkout=success`` redirect the dashboard schedules this poller, which
asks Stripe directly a bounded number of times and then stops.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable

import httpx
import stripe
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from royally_tuned.billing.status import is_premium
from royally_tuned.config import settings
from royally_tuned.database import async_session_factory
from royally_tuned.identity.admin import IdentityError
from royally_tuned.services.subscription_service import verify_subscription

logger = logging.getLogger(__name__)


async def poll_verification(
    user_id: uuid.UUID,
    attempts: int | None = None,
    interval: float | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> str | None:
    """Verify the subscription until Stripe reports a premium status.

    Waits ``interval`` seconds before each attempt. Returns the confirmed
    status, or ``None`` after ``attempts`` tries without confirmation.
    """
    attempts = settings.checkout_verify_attempts if attempts is None else attempts
    interval = settings.checkout_verify_interval_seconds if interval is None else interval
    session_factory = session_factory or async_session_factory

    for attempt in range(1, attempts + 1):
        await sleep(interval)
        try:
            async with session_factory() as db:
                result = await verify_subscription(db, user_id)
                await db.commit()
        except (stripe.StripeError, IdentityError, SQLAlchemyError, httpx.HTTPError) as e:
            logger.warning("Verification attempt %d/%d for user %s failed: %s", attempt, attempts, user_id, e)
            continue

        if is_premium(result.status):
            logger.info("Subscription for user %s confirmed as %s on attempt %d", user_id, result.status, attempt)
            return result.status

        logger.debug("Attempt %d/%d for user %s: status still %s", attempt, attempts, user_id, result.status)

    logger.info("Gave up verifying subscription for user %s after %d attempts", user_id, attempts)
    return None
