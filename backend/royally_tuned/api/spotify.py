"""Spotify OAuth endpoints: authorize redirect and callback token exchange."""

import logging

from authlib.integrations.base_client import MismatchingStateError, OAuthError
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from httpx import HTTPError
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.api.deps import get_db
from royally_tuned.auth.oauth import oauth
from royally_tuned.config import settings
from royally_tuned.services.spotify_service import decode_state, encode_state, save_spotify_tokens

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/spotify", tags=["spotify"])


@router.get("/auth")
async def spotify_auth(request: Request, userId: str | None = None) -> RedirectResponse:  # noqa: N803
    """Redirect to Spotify's consent screen, carrying the user ID in ``state``."""
    if not userId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing userId")
    if not settings.spotify_configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Spotify not configured on server",
        )

    return await oauth.spotify.authorize_redirect(  # type: ignore[return-value]
        request,
        settings.spotify_redirect_uri,
        state=encode_state(userId),
        show_dialog="true",
    )


@router.get("/callback")
async def spotify_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> RedirectResponse:
    """Exchange the authorization code, store the tokens, and return to the app."""
    if error:
        logger.warning("Spotify callback error: %s", error)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Spotify auth error")
    if not code or not state:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing code or state")

    user_id = decode_state(state)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid state")

    if not settings.spotify_configured or not settings.spotify_client_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Spotify not configured on server",
        )

    try:
        token = await oauth.spotify.authorize_access_token(request)
    except MismatchingStateError as e:
        logger.warning("Spotify callback state mismatch for user %s", user_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid state") from e
    except (OAuthError, HTTPError) as e:
        logger.error("Spotify token exchange failed for user %s: %s", user_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token exchange failed",
        ) from e

    await save_spotify_tokens(db, user_id, dict(token))

    return RedirectResponse(
        url=f"{settings.public_app_url.rstrip('/')}/app?spotify=connected",
        status_code=status.HTTP_302_FOUND,
    )
