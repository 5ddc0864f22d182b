"""Pydantic v2 request/response schemas for billing endpoints.

The frontend sends and expects camelCase keys, so fields carry aliases.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field

# --- Request schemas ---


class UserRequest(BaseModel):
    """Request body carrying only the Supabase user ID."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: uuid.UUID = Field(alias="userId")


# --- Response schemas ---


class RedirectUrlResponse(BaseModel):
    """A Stripe-hosted URL the browser should navigate to."""

    url: str


class VerifySubscriptionResponse(BaseModel):
    """Result of a manual subscription verification."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    stripe_customer_id: str | None = Field(default=None, alias="stripeCustomerId")
    profile_updated: bool | None = Field(default=None, alias="profileUpdated")
    profile_created: bool | None = Field(default=None, alias="profileCreated")
    message: str | None = None


class WebhookAckResponse(BaseModel):
    received: bool = True
