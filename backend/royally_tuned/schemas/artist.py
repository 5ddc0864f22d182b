"""Pydantic v2 request/response schemas for artist endpoints."""

import uuid

from pydantic import BaseModel, ConfigDict, Field


class CreateArtistRequest(BaseModel):
    """Create an artist owned by the given user."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: uuid.UUID = Field(alias="userId")
    artist_name: str = Field(alias="artistName", min_length=1, max_length=255)


class ArtistSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    artist_name: str = Field(alias="artistName")


class CreateArtistResponse(BaseModel):
    success: bool = True
    artist: ArtistSummary
