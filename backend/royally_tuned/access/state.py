"""Per-client subscription state machine.

The client's belief about payment state used to be three independent flags
(status string, grace timestamp, "was premium"). Here it is one state kept in
the signed session cookie::

    unknown ──checkout redirect──▶ pending_confirmation
       │                               │
       └──────── status signal ────────┴──▶ confirmed_pro | confirmed_free

Every transition records the signal that caused it and when. A status
signal that is neither premium nor revoked (``None``, ``past_due``) leaves
the phase alone.
"""

import enum
import uuid
from dataclasses import asdict, dataclass, replace
from typing import Any

from royally_tuned.billing.status import is_premium, is_revoked

SESSION_KEY = "subscription_state"

# Seconds after a checkout=success redirect during which the client is treated as paid
GRACE_PERIOD_SECONDS = 10 * 60

# A new checkout redirect only restarts the grace period once the previous one is this old
CHECKOUT_RESTAMP_COOLDOWN_SECONDS = 24 * 60 * 60


class Phase(str, enum.Enum):
    UNKNOWN = "unknown"
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED_PRO = "confirmed_pro"
    CONFIRMED_FREE = "confirmed_free"


class Signal(str, enum.Enum):
    """Where an observation came from."""

    CHECKOUT_REDIRECT = "checkout_redirect"
    PROFILE = "profile"
    TOKEN = "token"
    CHECKOUT_WEBHOOK = "checkout_webhook"
    SUBSCRIPTION_WEBHOOK = "subscription_webhook"
    VERIFY = "verify"

    @classmethod
    def from_value(cls, value: str | None, default: "Signal") -> "Signal":
        try:
            return cls(value) if value else default
        except ValueError:
            return default


@dataclass(frozen=True)
class SubscriptionState:
    user_id: str | None = None
    phase: Phase = Phase.UNKNOWN
    grace_started_at: float | None = None
    source: Signal | None = None
    updated_at: float | None = None

    @property
    def was_premium(self) -> bool:
        return self.phase is Phase.CONFIRMED_PRO

    def grace_active(self, now: float) -> bool:
        if self.grace_started_at is None:
            return False
        return now - self.grace_started_at <= GRACE_PERIOD_SECONDS

    def stamp_checkout(self, now: float) -> "SubscriptionState":
        """Record a checkout=success redirect: start the grace period.

        Repeating the redirect inside the cooldown keeps the original stamp,
        so reloading the success URL cannot extend the grace period.
        """
        if self.grace_started_at is not None and now - self.grace_started_at < CHECKOUT_RESTAMP_COOLDOWN_SECONDS:
            return self
        phase = self.phase if self.phase is Phase.CONFIRMED_PRO else Phase.PENDING_CONFIRMATION
        return replace(
            self,
            phase=phase,
            grace_started_at=now,
            source=Signal.CHECKOUT_REDIRECT,
            updated_at=now,
        )

    def observe(self, status: str | None, source: Signal, now: float) -> "SubscriptionState":
        """Fold an observed subscription status into the state.

        While a checkout is pending and its grace period runs, a revoked
        status is the pre-checkout value and does not confirm ``free``.
        """
        if is_premium(status):
            phase = Phase.CONFIRMED_PRO
        elif is_revoked(status):
            if self.phase is Phase.PENDING_CONFIRMATION and self.grace_active(now):
                return self
            phase = Phase.CONFIRMED_FREE
        else:
            return self
        if phase is self.phase:
            return self
        return replace(self, phase=phase, source=source, updated_at=now)

    def to_session(self) -> dict[str, Any]:
        data = asdict(self)
        data["phase"] = self.phase.value
        data["source"] = self.source.value if self.source else None
        return data

    @classmethod
    def from_session(cls, session: dict[str, Any], user_id: uuid.UUID | str) -> "SubscriptionState":
        """Load the state for ``user_id``; a different user's state is discarded."""
        raw = session.get(SESSION_KEY)
        if not isinstance(raw, dict) or raw.get("user_id") != str(user_id):
            return cls(user_id=str(user_id))
        try:
            return cls(
                user_id=str(user_id),
                phase=Phase(raw.get("phase", Phase.UNKNOWN.value)),
                grace_started_at=raw.get("grace_started_at"),
                source=Signal(raw["source"]) if raw.get("source") else None,
                updated_at=raw.get("updated_at"),
            )
        except ValueError:
            return cls(user_id=str(user_id))

    def save(self, session: dict[str, Any]) -> None:
        session[SESSION_KEY] = self.to_session()
