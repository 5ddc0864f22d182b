"""Supabase Auth admin API wrapper (service-role access to auth users)."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

import httpx

from royally_tuned.config import settings

logger = logging.getLogger(__name__)

_TIMEOUT = httpx.Timeout(10.0)


class IdentityError(Exception):
    """Base error for identity-provider admin calls."""


class IdentityConfigError(IdentityError):
    """Raised when SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are not set."""


class UserNotFoundError(IdentityError):
    """Raised when the identity provider has no user with the given ID."""


@dataclass
class IdentityUser:
    """The subset of a Supabase auth user this service reads."""

    id: uuid.UUID
    email: str | None
    app_metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "IdentityUser":
        # Admin endpoints return the user either bare or wrapped in {"user": ...}
        data = payload.get("user", payload)
        return cls(
            id=uuid.UUID(str(data["id"])),
            email=data.get("email") or None,
            app_metadata=dict(data.get("app_metadata") or {}),
        )

    @property
    def stripe_customer_id(self) -> str | None:
        return self.app_metadata.get("stripe_customer_id") or None

    @property
    def subscription_status(self) -> str | None:
        return self.app_metadata.get("subscription_status") or None


def merge_app_metadata(user: IdentityUser, fields: dict[str, Any]) -> dict[str, Any]:
    """Return the user's app_metadata with ``fields`` layered on top.

    ``None`` values in ``fields`` are skipped so a partial update never
    erases an existing key.
    """
    merged = dict(user.app_metadata)
    merged.update({k: v for k, v in fields.items() if v is not None})
    return merged


def get_admin_client() -> httpx.AsyncClient:
    """Create an httpx client authenticated with the service-role key."""
    if not settings.supabase_configured:
        raise IdentityConfigError("Supabase not configured")
    key = settings.supabase_service_role_key
    return httpx.AsyncClient(
        base_url=f"{settings.supabase_url.rstrip('/')}/auth/v1",
        headers={"apikey": key, "Authorization": f"Bearer {key}"},
        timeout=_TIMEOUT,
    )


async def get_user_by_id(user_id: uuid.UUID | str) -> IdentityUser:
    """Fetch an auth user by ID."""
    try:
        async with get_admin_client() as client:
            response = await client.get(f"/admin/users/{user_id}")
    except httpx.HTTPError as e:
        logger.error("Supabase admin getUserById request failed: %s", e)
        raise IdentityError(f"User lookup request failed: {e}") from e
    if response.status_code == 404:
        raise UserNotFoundError(f"User {user_id} not found")
    if response.is_error:
        logger.error("Supabase admin getUserById failed (%s): %s", response.status_code, response.text)
        raise IdentityError(f"User lookup failed with status {response.status_code}")
    return IdentityUser.from_payload(response.json())


async def update_app_metadata(user_id: uuid.UUID | str, app_metadata: dict[str, Any]) -> IdentityUser:
    """Replace the user's app_metadata (callers merge first, see merge_app_metadata)."""
    try:
        async with get_admin_client() as client:
            response = await client.put(f"/admin/users/{user_id}", json={"app_metadata": app_metadata})
    except httpx.HTTPError as e:
        logger.error("Supabase admin updateUserById request failed: %s", e)
        raise IdentityError(f"User update request failed: {e}") from e
    if response.status_code == 404:
        raise UserNotFoundError(f"User {user_id} not found")
    if response.is_error:
        logger.error("Supabase admin updateUserById failed (%s): %s", response.status_code, response.text)
        raise IdentityError(f"User update failed with status {response.status_code}")
    logger.info("Updated app_metadata for user %s", user_id)
    return IdentityUser.from_payload(response.json())
