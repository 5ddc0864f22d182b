"""Spotify connection helpers: OAuth state encoding and token persistence."""

import base64
import binascii
import json
import logging
import time
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.models.spotify_token import SpotifyToken

logger = logging.getLogger(__name__)


def encode_state(user_id: uuid.UUID | str, now_ms: int | None = None) -> str:
    """Pack the user ID and a timestamp into the OAuth ``state`` parameter."""
    t = now_ms if now_ms is not None else int(time.time() * 1000)
    raw = json.dumps({"userId": str(user_id), "t": t}, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_state(state: str) -> uuid.UUID | None:
    """Recover the user ID from a ``state`` parameter; None if it is malformed."""
    try:
        data = json.loads(base64.b64decode(state, validate=True).decode("utf-8"))
        return uuid.UUID(str(data["userId"]))
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None


async def save_spotify_tokens(
    db: AsyncSession,
    user_id: uuid.UUID,
    token: dict,
    now: float | None = None,
) -> SpotifyToken:
    """Upsert the user's Spotify tokens (one row per user)."""
    now = time.time() if now is None else now
    expires_at = int(now) + int(token.get("expires_in") or 0)

    result = await db.execute(select(SpotifyToken).where(SpotifyToken.user_id == user_id))
    row = result.scalar_one_or_none()
    if row is None:
        row = SpotifyToken(user_id=user_id)
        db.add(row)

    row.access_token = token["access_token"]
    # Spotify omits refresh_token on some re-authorizations; keep the old one
    row.refresh_token = token.get("refresh_token") or row.refresh_token
    row.scope = token.get("scope")
    row.expires_at = expires_at
    await db.flush()

    logger.info("Stored Spotify tokens for user %s (expires_at=%s)", user_id, expires_at)
    return row
