"""Tests for the gated-page access decision."""

import pytest

from royally_tuned.access.dependencies import derive_subscription_status
from royally_tuned.access.guard import (
    REASON_DENIED,
    REASON_GRACE,
    REASON_PREVIOUSLY_PREMIUM,
    REASON_STATUS,
    evaluate_access,
)
from royally_tuned.access.state import Phase, SubscriptionState

NOW = 1_700_000_000.0


def _state(phase: Phase = Phase.UNKNOWN, grace_started_at: float | None = None) -> SubscriptionState:
    return SubscriptionState(user_id="u1", phase=phase, grace_started_at=grace_started_at)


class TestEvaluateAccess:
    @pytest.mark.parametrize("status", ["pro", "active", "trialing", "enterprise"])
    def test_premium_status_grants(self, status):
        decision = evaluate_access(status, _state(), NOW)
        assert decision.granted
        assert decision.reason == REASON_STATUS

    def test_free_without_flags_is_denied(self):
        decision = evaluate_access("free", _state(), NOW)
        assert not decision.granted
        assert decision.reason == REASON_DENIED

    def test_unknown_status_without_flags_is_denied(self):
        assert not evaluate_access(None, _state(), NOW).granted

    def test_grace_grants_free_user_within_window(self):
        state = _state(Phase.PENDING_CONFIRMATION, grace_started_at=NOW - 599)
        decision = evaluate_access("free", state, NOW)
        assert decision.granted
        assert decision.reason == REASON_GRACE

    def test_grace_granted_at_exactly_600_seconds(self):
        state = _state(Phase.PENDING_CONFIRMATION, grace_started_at=NOW - 600)
        assert evaluate_access("free", state, NOW).granted

    def test_grace_expired_at_601_seconds(self):
        state = _state(Phase.PENDING_CONFIRMATION, grace_started_at=NOW - 601)
        assert not evaluate_access("free", state, NOW).granted

    def test_previously_premium_with_inconclusive_status(self):
        decision = evaluate_access("past_due", _state(Phase.CONFIRMED_PRO), NOW)
        assert decision.granted
        assert decision.reason == REASON_PREVIOUSLY_PREMIUM

    def test_previously_premium_with_no_status(self):
        assert evaluate_access(None, _state(Phase.CONFIRMED_PRO), NOW).granted

    @pytest.mark.parametrize("status", ["free", "canceled", "cancelled", "expired", "unpaid"])
    def test_revoked_status_overrides_previously_premium(self, status):
        assert not evaluate_access(status, _state(Phase.CONFIRMED_PRO), NOW).granted


class TestDeriveSubscriptionStatus:
    def test_profile_wins(self):
        assert derive_subscription_status("pro", {"subscription_status": "free"}) == "pro"

    def test_falls_back_to_token_metadata(self):
        assert derive_subscription_status(None, {"subscription_status": "active"}) == "active"

    def test_nothing_known(self):
        assert derive_subscription_status(None, {}) is None
        assert derive_subscription_status(None, None) is None
