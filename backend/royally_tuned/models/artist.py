"""Artist and ArtistManager models."""

import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royally_tuned.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

MANAGER_ROLES = ("owner", "manager", "viewer")


class Artist(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """An artist profile that one or more users can manage."""

    __tablename__ = "artists"

    artist_name: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    ipi_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    isni_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    pro_affiliation: Mapped[str | None] = mapped_column(String(50), nullable=True)
    publisher_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    managers: Mapped[list["ArtistManager"]] = relationship(
        back_populates="artist", lazy="selectin", cascade="all, delete-orphan"
    )
    tracks: Mapped[list["Track"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="artist", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Artist(id={self.id}, artist_name={self.artist_name!r})>"


class ArtistManager(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Grants a user a role over an artist (many-to-many link)."""

    __tablename__ = "artist_managers"

    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    artist_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="owner")  # owner, manager, viewer

    # Relationships
    artist: Mapped["Artist"] = relationship(back_populates="managers", lazy="selectin")

    __table_args__ = (UniqueConstraint("user_id", "artist_id", name="uq_artist_managers_user_artist"),)

    def __repr__(self) -> str:
        return f"<ArtistManager(user_id={self.user_id}, artist_id={self.artist_id}, role={self.role!r})>"
