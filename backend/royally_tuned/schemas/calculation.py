"""Pydantic v2 schemas for the stream-calculator snapshot endpoint."""

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CalculationPayload(BaseModel):
    """Calculator output as produced by the frontend."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    platform_streams: dict[str, float | None] = Field(default_factory=dict, alias="platformStreams")
    total_streams: float | None = Field(default=None, alias="totalStreams")
    totals: dict[str, Any] | None = None


class SaveCalculationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: uuid.UUID = Field(alias="userId")
    payload: CalculationPayload


class SaveCalculationResponse(BaseModel):
    ok: bool = True
