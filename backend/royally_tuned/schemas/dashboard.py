"""Pydantic v2 response schemas for the gated dashboard endpoint."""

import uuid

from pydantic import BaseModel, ConfigDict, Field


class AccessResponse(BaseModel):
    granted: bool
    reason: str
    phase: str


class ManagedArtistResponse(BaseModel):
    """An artist the user manages, with a roll-up of its tracks."""

    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    artist_name: str = Field(alias="artistName")
    manager_role: str = Field(alias="managerRole")
    track_count: int = Field(alias="trackCount")
    sync_ready_tracks: int = Field(alias="syncReadyTracks")


class DashboardResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: uuid.UUID = Field(alias="userId")
    email: str | None
    subscription_status: str | None = Field(alias="subscriptionStatus")
    access: AccessResponse
    verification_scheduled: bool = Field(alias="verificationScheduled")
    artists: list[ManagedArtistResponse]
