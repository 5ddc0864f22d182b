"""Track model: per-artist song metadata and sync licensing package."""

import uuid
from datetime import date
from typing import Any

from sqlalchemy import JSON, Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royally_tuned.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from royally_tuned.services.track_sync import (
    default_registration_status,
    default_sync_checklist,
    default_sync_files,
)


class Track(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A song belonging to an artist, with registration and sync metadata."""

    __tablename__ = "tracks"

    artist_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    isrc: Mapped[str | None] = mapped_column(String(20), nullable=True)
    iswc: Mapped[str | None] = mapped_column(String(20), nullable=True)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    writers: Mapped[list[str]] = mapped_column(JSON, default=list)
    splits: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    registration_status: Mapped[dict[str, bool]] = mapped_column(JSON, default=default_registration_status)

    # Six booleans, see track_sync.SYNC_CHECKLIST_KEYS
    sync_checklist: Mapped[dict[str, bool]] = mapped_column(JSON, default=default_sync_checklist)
    # Six optional file URLs, see track_sync.SYNC_FILE_KEYS
    sync_files: Mapped[dict[str, str | None]] = mapped_column(JSON, default=default_sync_files)

    # Relationships
    artist: Mapped["Artist"] = relationship(back_populates="tracks", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<Track(id={self.id}, title={self.title!r}, artist_id={self.artist_id})>"
