"""Profile model: denormalized mirror of the identity-provider user."""

import uuid
from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from royally_tuned.database import Base, TimestampMixin


class Profile(TimestampMixin, Base):
    """Per-user profile row; the primary read path for subscription status."""

    __tablename__ = "profiles"

    # Same UUID as the Supabase auth user
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Billing
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    subscription_status: Mapped[str] = mapped_column(
        String(50), nullable=False, server_default="free", default="free"
    )  # free, pro, enterprise, cancelled, past_due
    subscription_status_source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subscription_status_updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Artist-facing details
    artist_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    legal_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pro_affiliation: Mapped[str | None] = mapped_column(String(50), nullable=True)
    publisher_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Profile id={self.id} email={self.email!r} status={self.subscription_status!r}>"
