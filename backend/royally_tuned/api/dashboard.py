"""Gated dashboard endpoint: the server-side counterpart of the SPA's protected routes."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.access.guard import REASON_STATUS
from royally_tuned.api.deps import AccessContext, get_db, require_subscription
from royally_tuned.schemas.dashboard import AccessResponse, DashboardResponse, ManagedArtistResponse
from royally_tuned.services.artist_service import list_managed_artists
from royally_tuned.services.checkout_verification import poll_verification
from royally_tuned.services.track_sync import sync_readiness

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/app", response_model=DashboardResponse)
async def dashboard(
    background_tasks: BackgroundTasks,
    access: AccessContext = Depends(require_subscription),
    db: AsyncSession = Depends(get_db),
) -> DashboardResponse:
    """Summarise the user's account and managed artists.

    On ``?checkout=success`` the post-checkout verification poller is
    scheduled to run after the response is sent.
    """
    verification_scheduled = False
    if access.checkout_success and access.decision.reason != REASON_STATUS:
        background_tasks.add_task(poll_verification, access.user.id)
        verification_scheduled = True
        logger.info("Scheduled post-checkout verification for user %s", access.user.id)

    links = await list_managed_artists(db, access.user.id)
    artists = []
    for link in links:
        tracks = link.artist.tracks
        ready = sum(1 for t in tracks if sync_readiness(t.sync_checklist, t.sync_files).is_complete)
        artists.append(
            ManagedArtistResponse(
                id=link.artist.id,
                artist_name=link.artist.artist_name,
                manager_role=link.role,
                track_count=len(tracks),
                sync_ready_tracks=ready,
            )
        )

    return DashboardResponse(
        user_id=access.user.id,
        email=access.user.email,
        subscription_status=access.status,
        access=AccessResponse(
            granted=access.decision.granted,
            reason=access.decision.reason,
            phase=access.state.phase.value,
        ),
        verification_scheduled=verification_scheduled,
        artists=artists,
    )
