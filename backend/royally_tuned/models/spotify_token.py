"""Spotify OAuth token storage, one row per user."""

import uuid

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from royally_tuned.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class SpotifyToken(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Access/refresh token pair from the Spotify authorization-code flow."""

    __tablename__ = "spotify_tokens"

    user_id: Mapped[uuid.UUID] = mapped_column(unique=True, nullable=False, index=True)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    scope: Mapped[str | None] = mapped_column(String(512), nullable=True)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)  # unix seconds

    def __repr__(self) -> str:
        return f"<SpotifyToken(user_id={self.user_id}, expires_at={self.expires_at})>"
