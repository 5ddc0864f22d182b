"""Artist service: create artists and manage who can act on them."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.models.artist import MANAGER_ROLES, Artist, ArtistManager

logger = logging.getLogger(__name__)


class ArtistLinkError(Exception):
    """Raised when an artist was created but could not be linked to its owner."""


async def link_manager(
    db: AsyncSession,
    artist_id: uuid.UUID,
    user_id: uuid.UUID,
    role: str = "owner",
) -> ArtistManager:
    """Grant ``user_id`` a role over the artist.

    Runs in a savepoint so a failed insert leaves the outer transaction usable.
    """
    if role not in MANAGER_ROLES:
        raise ValueError(f"Invalid manager role: {role!r}")
    async with db.begin_nested():
        link = ArtistManager(user_id=user_id, artist_id=artist_id, role=role)
        db.add(link)
    return link


async def create_artist_for_user(db: AsyncSession, user_id: uuid.UUID, artist_name: str) -> Artist:
    """Create an artist and link ``user_id`` as its owner.

    The two writes are not one transaction on the hosted store; if the link
    fails the artist is deleted again so no artist is left without a manager.
    """
    artist = Artist(artist_name=artist_name)
    db.add(artist)
    await db.flush()
    logger.info("Created artist %s (%r) for user %s", artist.id, artist_name, user_id)

    try:
        await link_manager(db, artist.id, user_id, role="owner")
    except SQLAlchemyError as e:
        logger.error("Error linking user %s to artist %s: %s", user_id, artist.id, e)
        await db.delete(artist)
        await db.flush()
        raise ArtistLinkError(f"Failed to link artist {artist.id} to user {user_id}") from e

    return artist


async def list_managed_artists(db: AsyncSession, user_id: uuid.UUID) -> list[ArtistManager]:
    """Return the user's manager links (with artists loaded), oldest first."""
    result = await db.execute(
        select(ArtistManager)
        .where(ArtistManager.user_id == user_id)
        .order_by(ArtistManager.created_at.asc())
    )
    return list(result.scalars().all())
