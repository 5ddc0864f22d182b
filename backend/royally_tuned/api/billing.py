"""Billing API endpoints: Stripe Checkout, Customer Portal, and status verification."""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.api.deps import get_db
from royally_tuned.billing.stripe_client import (
    create_checkout_session,
    create_customer,
    create_guest_checkout_session,
    create_portal_session,
)
from royally_tuned.config import settings
from royally_tuned.errors import error_body
from royally_tuned.identity.admin import (
    IdentityError,
    UserNotFoundError,
    get_user_by_id,
    merge_app_metadata,
    update_app_metadata,
)
from royally_tuned.schemas.billing import (
    RedirectUrlResponse,
    UserRequest,
    VerifySubscriptionResponse,
)
from royally_tuned.services.subscription_service import verify_subscription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["billing"])


def request_origin(request: Request) -> str:
    """Origin to build Stripe redirect URLs from: the caller's, else the public app URL."""
    return (request.headers.get("origin") or settings.public_app_url).rstrip("/")


def _require_price_id() -> str:
    if not settings.stripe_price_id_pro:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing PRICE_ID_PRO",
        )
    return settings.stripe_price_id_pro


@router.post("/create-checkout-session", response_model=RedirectUrlResponse)
async def create_checkout(body: UserRequest, request: Request) -> RedirectUrlResponse:
    """Create a Stripe Checkout session for the Pro subscription."""
    price_id = _require_price_id()
    user_id = str(body.user_id)

    try:
        user = await get_user_by_id(body.user_id)
        customer_id = user.stripe_customer_id

        if not customer_id:
            customer = await create_customer(email=user.email, user_id=user_id)
            customer_id = customer.id
            await update_app_metadata(
                body.user_id,
                merge_app_metadata(user, {"stripe_customer_id": customer_id}),
            )

        session = await create_checkout_session(
            customer_id=customer_id,
            user_id=user_id,
            price_id=price_id,
            origin=request_origin(request),
        )
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from e
    except (stripe.StripeError, IdentityError) as e:
        logger.error("create-checkout-session error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Unknown error",
        ) from e

    return RedirectUrlResponse(url=session.url)


@router.post("/create-guest-checkout", response_model=RedirectUrlResponse)
async def create_guest_checkout(request: Request) -> RedirectUrlResponse:
    """Create a Stripe Checkout session for a visitor without an account."""
    price_id = _require_price_id()

    try:
        session = await create_guest_checkout_session(price_id=price_id, origin=request_origin(request))
    except stripe.StripeError as e:
        logger.error("create-guest-checkout error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Unknown error",
        ) from e

    return RedirectUrlResponse(url=session.url)


@router.post("/create-portal-session", response_model=RedirectUrlResponse)
async def create_portal(body: UserRequest, request: Request) -> RedirectUrlResponse:
    """Create a Stripe Customer Portal session for subscription management."""
    try:
        user = await get_user_by_id(body.user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from e
    except IdentityError as e:
        logger.error("create-portal-session error: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e

    if not user.stripe_customer_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No Stripe customer for user",
        )

    try:
        portal = await create_portal_session(
            customer_id=user.stripe_customer_id,
            return_url=f"{request_origin(request)}/?portal=return",
        )
    except stripe.StripeError as e:
        logger.error("create-portal-session error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Unknown error",
        ) from e

    return RedirectUrlResponse(url=portal.url)


@router.post(
    "/verify-subscription",
    response_model=VerifySubscriptionResponse,
    response_model_exclude_none=True,
)
async def verify(body: UserRequest, db: AsyncSession = Depends(get_db)) -> VerifySubscriptionResponse:
    """Reconcile the user's status straight from Stripe (webhook backstop)."""
    if not settings.supabase_configured:
        logger.error("Missing Supabase environment variables")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Server configuration error", "Supabase not configured"),
        )
    if not settings.stripe_configured:
        logger.error("Missing Stripe environment variables")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Server configuration error", "Stripe not configured"),
        )

    try:
        result = await verify_subscription(db, body.user_id)
    except UserNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_body("User not found", str(e)),
        ) from e
    except (stripe.StripeError, IdentityError) as e:
        logger.exception("verify-subscription error for user %s", body.user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Internal server error", str(e) or "Unknown error"),
        ) from e

    if result.stripe_customer_id is None:
        return VerifySubscriptionResponse(
            status=result.status,
            message=result.message,
            profile_created=result.profile_updated,
        )
    return VerifySubscriptionResponse(
        status=result.status,
        stripe_customer_id=result.stripe_customer_id,
        profile_updated=result.profile_updated,
    )
