"""Artist API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.api.deps import get_db
from royally_tuned.errors import error_body
from royally_tuned.identity.admin import IdentityError, UserNotFoundError, get_user_by_id
from royally_tuned.schemas.artist import ArtistSummary, CreateArtistRequest, CreateArtistResponse
from royally_tuned.services.artist_service import ArtistLinkError, create_artist_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/artists", tags=["artists"])


@router.post("/create", response_model=CreateArtistResponse)
async def create_artist(
    body: CreateArtistRequest,
    db: AsyncSession = Depends(get_db),
) -> CreateArtistResponse:
    """Create an artist profile and make the requesting user its owner."""
    try:
        await get_user_by_id(body.user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from e
    except IdentityError as e:
        logger.error("Error verifying user %s: %s", body.user_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Internal server error", str(e)),
        ) from e

    try:
        artist = await create_artist_for_user(db, body.user_id, body.artist_name)
    except ArtistLinkError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to link artist to user",
        ) from e
    except SQLAlchemyError as e:
        logger.error("Error creating artist for user %s: %s", body.user_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create artist",
        ) from e

    return CreateArtistResponse(
        artist=ArtistSummary(id=artist.id, artist_name=artist.artist_name),
    )
