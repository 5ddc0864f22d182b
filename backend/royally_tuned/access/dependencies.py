"""FastAPI dependencies that derive subscription status and gate paid endpoints."""

import logging
import time
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.access.guard import AccessDecision, evaluate_access
from royally_tuned.access.state import Signal, SubscriptionState
from royally_tuned.auth.dependencies import CurrentUser, get_current_user
from royally_tuned.database import get_db
from royally_tuned.services.subscription_service import get_profile_status

logger = logging.getLogger(__name__)


@dataclass
class ResolvedStatus:
    """A subscription status together with where it was read from."""

    value: str | None
    source: Signal


@dataclass
class AccessContext:
    user: CurrentUser
    status: str | None
    decision: AccessDecision
    state: SubscriptionState
    checkout_success: bool


def derive_subscription_status(profile_status: str | None, app_metadata: dict[str, Any] | None) -> str | None:
    """Prefer the profile row's status; fall back to the token's app_metadata."""
    if profile_status:
        return profile_status
    return (app_metadata or {}).get("subscription_status") or None


async def get_subscription_status(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ResolvedStatus:
    profile_status, profile_source = await get_profile_status(db, user.id)
    value = derive_subscription_status(profile_status, user.app_metadata)
    if profile_status:
        source = Signal.from_value(profile_source, Signal.PROFILE)
    else:
        source = Signal.TOKEN
    return ResolvedStatus(value=value, source=source)


async def require_subscription(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    resolved: ResolvedStatus = Depends(get_subscription_status),
) -> AccessContext:
    """Allow paying users through; everyone else gets 403.

    A ``?checkout=success`` query parameter starts the grace period before
    the decision is taken.
    """
    now = time.time()
    checkout_success = request.query_params.get("checkout") == "success"

    state = SubscriptionState.from_session(request.session, user.id)
    if checkout_success:
        state = state.stamp_checkout(now)
    state = state.observe(resolved.value, resolved.source, now)
    state.save(request.session)

    decision = evaluate_access(resolved.value, state, now)
    if not decision.granted:
        logger.info("Access denied for user %s (status=%s, phase=%s)", user.id, resolved.value, state.phase.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Subscription required",
        )

    return AccessContext(
        user=user,
        status=resolved.value,
        decision=decision,
        state=state,
        checkout_success=checkout_success,
    )
