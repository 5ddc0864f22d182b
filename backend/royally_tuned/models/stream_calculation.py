"""Stream calculation snapshot, one row per platform."""

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from royally_tuned.database import Base, UUIDPrimaryKeyMixin


class StreamCalculation(UUIDPrimaryKeyMixin, Base):
    """Estimated earnings for one platform from a saved calculator run. Rows are immutable."""

    __tablename__ = "stream_calculations"

    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    platform: Mapped[str] = mapped_column(String(100), nullable=False)
    streams: Mapped[int] = mapped_column(BigInteger, default=0)
    rate_per_stream: Mapped[float] = mapped_column(Numeric(14, 8), default=0)
    estimated_earnings: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), index=True)

    def __repr__(self) -> str:
        return f"<StreamCalculation(user_id={self.user_id}, platform={self.platform!r}, streams={self.streams})>"
