"""Subscription status vocabulary: Stripe statuses mapped to app statuses."""

# Values accepted by the profiles.subscription_status column
APP_STATUSES: frozenset[str] = frozenset({"free", "pro", "enterprise", "cancelled", "past_due"})

# Any of these grants access to gated pages on its own
PREMIUM_STATUSES: frozenset[str] = frozenset({"pro", "active", "trialing", "enterprise"})

# An observed status in this set revokes the "was premium" override
REVOKED_STATUSES: frozenset[str] = frozenset({"free", "canceled", "cancelled", "expired", "unpaid"})

_STRIPE_TO_APP: dict[str, str] = {
    "active": "pro",
    "trialing": "pro",
    "canceled": "cancelled",
    "unpaid": "cancelled",
    "incomplete_expired": "cancelled",
    "past_due": "past_due",
    "incomplete": "past_due",
}


def map_stripe_status(stripe_status: str | None) -> str:
    """Map a Stripe subscription status to the app's status vocabulary.

    Unrecognised statuses fall back to ``pro``.
    """
    return _STRIPE_TO_APP.get(stripe_status or "", "pro")


def is_premium(status: str | None) -> bool:
    return status in PREMIUM_STATUSES


def is_revoked(status: str | None) -> bool:
    return status in REVOKED_STATUSES
