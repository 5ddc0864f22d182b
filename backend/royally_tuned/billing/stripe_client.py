"""Async Stripe API wrapper for Royally Tuned."""

import json
import logging

import stripe
from stripe import StripeClient

from royally_tuned.config import settings

logger = logging.getLogger(__name__)


class WebhookSecretNotConfigured(Exception):
    """Raised when a webhook arrives but no signing secret is configured."""


def get_stripe_client() -> StripeClient:
    """Create a StripeClient instance with async HTTP support."""
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


async def create_customer(email: str | None, user_id: str) -> stripe.Customer:
    """Create a Stripe customer linked to a Supabase user."""
    client = get_stripe_client()
    logger.info("Creating Stripe customer for user %s (%s)", user_id, email)
    params: dict = {"metadata": {"supabase_user_id": user_id}}
    if email:
        params["email"] = email
    customer = await client.v1.customers.create_async(params=params)
    logger.info("Created Stripe customer %s for user %s", customer.id, user_id)
    return customer


async def find_customer_id_by_email(email: str) -> str | None:
    """Return the ID of the first Stripe customer with this email, if any."""
    client = get_stripe_client()
    customers = await client.v1.customers.list_async(params={"email": email, "limit": 1})
    if customers.data:
        return customers.data[0].id
    return None


async def get_latest_subscription(customer_id: str) -> stripe.Subscription | None:
    """Return the customer's most recent subscription in any status."""
    client = get_stripe_client()
    subscriptions = await client.v1.subscriptions.list_async(
        params={"customer": customer_id, "status": "all", "limit": 1}
    )
    if subscriptions.data:
        return subscriptions.data[0]
    return None


async def create_checkout_session(
    customer_id: str,
    user_id: str,
    price_id: str,
    origin: str,
) -> stripe.checkout.Session:
    """Create a Checkout Session for a signed-in user's Pro subscription."""
    client = get_stripe_client()
    logger.info("Creating checkout session for customer %s, price %s", customer_id, price_id)
    return await client.v1.checkout.sessions.create_async(
        params={
            "mode": "subscription",
            "customer": customer_id,
            "client_reference_id": user_id,
            "subscription_data": {"metadata": {"supabase_user_id": user_id}},
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": f"{origin}/?checkout=success",
            "cancel_url": f"{origin}/?checkout=cancelled",
            "allow_promotion_codes": True,
        }
    )


async def create_guest_checkout_session(price_id: str, origin: str) -> stripe.checkout.Session:
    """Create a Checkout Session for a visitor who has no account yet.

    The account is created afterwards on the ``/create-account`` page using
    the session ID Stripe substitutes into the success URL.
    """
    client = get_stripe_client()
    logger.info("Creating guest checkout session, price %s", price_id)
    return await client.v1.checkout.sessions.create_async(
        params={
            "mode": "subscription",
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": f"{origin}/create-account?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{origin}/pricing?checkout=cancelled",
            "allow_promotion_codes": True,
        }
    )


async def create_portal_session(customer_id: str, return_url: str) -> stripe.billing_portal.Session:
    """Create a Stripe Customer Portal session for subscription management."""
    client = get_stripe_client()
    logger.info("Creating portal session for customer %s", customer_id)
    return await client.v1.billing_portal.sessions.create_async(
        params={
            "customer": customer_id,
            "return_url": return_url,
        }
    )


def construct_webhook_event(payload: bytes, sig_header: str | None) -> stripe.Event:
    """Verify and construct a Stripe webhook event (synchronous).

    Without a configured signing secret the payload is only trusted when
    unsigned webhooks are explicitly allowed (local development).
    """
    if settings.stripe_webhook_secret:
        client = get_stripe_client()
        return client.construct_event(payload, sig_header or "", settings.stripe_webhook_secret)

    if not settings.stripe_allow_unsigned_webhooks:
        raise WebhookSecretNotConfigured("STRIPE_WEBHOOK_SECRET is not configured")

    logger.warning("No webhook secret configured, skipping signature verification")
    data = json.loads(payload.decode("utf-8"))
    return stripe.Event.construct_from(data, settings.stripe_secret_key)
