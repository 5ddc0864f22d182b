"""Stripe webhook endpoint: receives and processes Stripe events."""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.api.deps import get_db
from royally_tuned.billing.stripe_client import WebhookSecretNotConfigured, construct_webhook_event
from royally_tuned.billing.webhooks import EVENT_HANDLERS
from royally_tuned.schemas.billing import WebhookAckResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["webhooks"])


@router.post("/stripe-webhook", response_model=WebhookAckResponse)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)) -> WebhookAckResponse:
    """Receive and process Stripe webhook events."""
    # Raw bytes are required for signature verification
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        event = construct_webhook_event(payload, sig_header)
    except WebhookSecretNotConfigured as e:
        logger.error("Rejecting webhook: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook secret not configured",
        ) from e
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Webhook Error: {e}",
        ) from e

    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.debug("Unhandled webhook event type: %s", event.type)
        return WebhookAckResponse()

    logger.info("Processing webhook event: %s (id=%s)", event.type, event.id)

    try:
        await handler(db, event)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Error processing webhook event %s", event.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error",
        ) from e

    return WebhookAckResponse()
