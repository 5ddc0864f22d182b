"""Gated-page access decision.

Access is granted if ANY of:

1. the current status is premium (pro, active, trialing, enterprise);
2. the post-checkout grace period is running;
3. the client previously saw a premium status and the current status is
   not an explicit free/canceled/expired/unpaid.

The rules lean towards letting an unconfirmed user in rather than locking
out someone who has just paid.
"""

from dataclasses import dataclass

from royally_tuned.access.state import SubscriptionState
from royally_tuned.billing.status import is_premium, is_revoked

REASON_STATUS = "subscription_status"
REASON_GRACE = "grace_period"
REASON_PREVIOUSLY_PREMIUM = "previously_premium"
REASON_DENIED = "subscription_required"


@dataclass(frozen=True)
class AccessDecision:
    granted: bool
    reason: str


def evaluate_access(status: str | None, state: SubscriptionState, now: float) -> AccessDecision:
    if is_premium(status):
        return AccessDecision(True, REASON_STATUS)
    if state.grace_active(now):
        return AccessDecision(True, REASON_GRACE)
    if state.was_premium and not is_revoked(status):
        return AccessDecision(True, REASON_PREVIOUSLY_PREMIUM)
    return AccessDecision(False, REASON_DENIED)
