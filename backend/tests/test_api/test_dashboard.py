"""Tests for GET /api/app: subscription gating, grace period, and verification scheduling."""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from royally_tuned.access.guard import AccessDecision
from royally_tuned.access.state import GRACE_PERIOD_SECONDS, Phase, SubscriptionState
from royally_tuned.api.deps import AccessContext, require_subscription
from royally_tuned.auth.dependencies import CurrentUser
from royally_tuned.main import app
from royally_tuned.models.artist import Artist, ArtistManager
from royally_tuned.models.profile import Profile
from royally_tuned.models.track import Track
from royally_tuned.services.track_sync import SYNC_CHECKLIST_KEYS

POLL = "royally_tuned.api.dashboard.poll_verification"
CLOCK = "royally_tuned.access.dependencies.time"


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient):
        response = await client.get("/api/app")
        assert response.status_code == 401
        assert response.json() == {"error": "Could not validate credentials"}

    @pytest.mark.asyncio
    async def test_rejects_bad_token(self, client: AsyncClient):
        response = await client.get("/api/app", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestSubscriptionGate:
    @pytest.mark.asyncio
    async def test_pro_profile_granted(self, client: AsyncClient, auth_headers, pro_profile):
        with patch(POLL, new=AsyncMock()) as mock_poll:
            response = await client.get("/api/app", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == str(pro_profile.id)
        assert data["subscriptionStatus"] == "pro"
        assert data["access"] == {"granted": True, "reason": "subscription_status", "phase": "confirmed_pro"}
        assert data["verificationScheduled"] is False
        assert data["artists"] == []
        mock_poll.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_free_profile_denied(self, client: AsyncClient, auth_headers, free_profile):
        response = await client.get("/api/app", headers=auth_headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Subscription required"}

    @pytest.mark.asyncio
    async def test_token_metadata_used_without_profile(self, client: AsyncClient, user_id, make_token):
        token = make_token(user_id, app_metadata={"subscription_status": "active"})
        response = await client.get("/api/app", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["subscriptionStatus"] == "active"

    @pytest.mark.asyncio
    async def test_profile_overrides_token(self, client: AsyncClient, user_id, make_token, free_profile):
        token = make_token(user_id, app_metadata={"subscription_status": "active"})
        response = await client.get("/api/app", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403


class TestCheckoutGrace:
    @pytest.mark.asyncio
    async def test_checkout_success_grants_and_schedules_poller(
        self, client: AsyncClient, auth_headers, free_profile
    ):
        with patch(POLL, new=AsyncMock()) as mock_poll:
            response = await client.get("/api/app", params={"checkout": "success"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["access"] == {"granted": True, "reason": "grace_period", "phase": "pending_confirmation"}
        assert data["verificationScheduled"] is True
        mock_poll.assert_awaited_once_with(free_profile.id)

    @pytest.mark.asyncio
    async def test_grace_survives_in_session(self, client: AsyncClient, auth_headers, free_profile):
        with patch(POLL, new=AsyncMock()):
            first = await client.get("/api/app", params={"checkout": "success"}, headers=auth_headers)
            second = await client.get("/api/app", headers=auth_headers)

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["access"]["reason"] == "grace_period"
        assert second.json()["verificationScheduled"] is False

    @pytest.mark.asyncio
    async def test_grace_not_shared_with_other_user(
        self, client: AsyncClient, auth_headers, free_profile, db_session, make_token
    ):
        other = Profile(id=uuid.uuid4(), email="other@test.com", subscription_status="free")
        db_session.add(other)
        await db_session.flush()

        with patch(POLL, new=AsyncMock()):
            await client.get("/api/app", params={"checkout": "success"}, headers=auth_headers)
        response = await client.get(
            "/api/app", headers={"Authorization": f"Bearer {make_token(other.id, email=other.email)}"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_reloading_success_url_does_not_extend_grace(
        self, client: AsyncClient, auth_headers, free_profile
    ):
        clock = SimpleNamespace(time=lambda: 1_700_000_000.0)
        with patch(POLL, new=AsyncMock()), patch(CLOCK, new=clock):
            first = await client.get("/api/app", params={"checkout": "success"}, headers=auth_headers)
            clock.time = lambda: 1_700_000_000.0 + GRACE_PERIOD_SECONDS + 60
            second = await client.get("/api/app", params={"checkout": "success"}, headers=auth_headers)

        assert first.status_code == 200
        assert second.status_code == 403
        assert second.json() == {"error": "Subscription required"}

    @pytest.mark.asyncio
    async def test_premium_user_checkout_does_not_poll(self, client: AsyncClient, auth_headers, pro_profile):
        with patch(POLL, new=AsyncMock()) as mock_poll:
            response = await client.get("/api/app", params={"checkout": "success"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["verificationScheduled"] is False
        mock_poll.assert_not_awaited()


class TestSharedGate:
    @pytest.mark.asyncio
    async def test_dashboard_uses_shared_subscription_gate(self, client: AsyncClient, user_id):
        context = AccessContext(
            user=CurrentUser(id=user_id, email="artist@test.com"),
            status="pro",
            decision=AccessDecision(True, "subscription_status"),
            state=SubscriptionState(user_id=str(user_id), phase=Phase.CONFIRMED_PRO),
            checkout_success=False,
        )
        app.dependency_overrides[require_subscription] = lambda: context

        response = await client.get("/api/app")

        assert response.status_code == 200
        assert response.json()["userId"] == str(user_id)
        assert response.json()["access"]["phase"] == "confirmed_pro"


class TestPreviouslyPremium:
    @pytest.mark.asyncio
    async def test_past_due_keeps_access_after_pro(self, client: AsyncClient, auth_headers, pro_profile, db_session):
        assert (await client.get("/api/app", headers=auth_headers)).status_code == 200

        pro_profile.subscription_status = "past_due"
        await db_session.flush()

        response = await client.get("/api/app", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["access"]["reason"] == "previously_premium"

    @pytest.mark.asyncio
    async def test_cancellation_revokes_access(self, client: AsyncClient, auth_headers, pro_profile, db_session):
        assert (await client.get("/api/app", headers=auth_headers)).status_code == 200

        pro_profile.subscription_status = "cancelled"
        await db_session.flush()

        assert (await client.get("/api/app", headers=auth_headers)).status_code == 403

        # A later inconclusive status does not bring the override back
        pro_profile.subscription_status = "past_due"
        await db_session.flush()
        assert (await client.get("/api/app", headers=auth_headers)).status_code == 403


class TestManagedArtists:
    @pytest.mark.asyncio
    async def test_lists_artists_with_track_rollup(self, client: AsyncClient, auth_headers, pro_profile, db_session):
        artist = Artist(artist_name="Velvet Crowns")
        artist.tracks = [
            Track(user_id=pro_profile.id, title="Ready", sync_checklist={key: True for key in SYNC_CHECKLIST_KEYS}),
            Track(user_id=pro_profile.id, title="Not ready"),
        ]
        db_session.add(artist)
        db_session.add(ArtistManager(user_id=pro_profile.id, artist=artist, role="manager"))
        await db_session.flush()
        db_session.expunge_all()

        response = await client.get("/api/app", headers=auth_headers)

        assert response.status_code == 200
        (entry,) = response.json()["artists"]
        assert entry["artistName"] == "Velvet Crowns"
        assert entry["managerRole"] == "manager"
        assert entry["trackCount"] == 2
        assert entry["syncReadyTracks"] == 1
