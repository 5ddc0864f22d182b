"""Tests for the Supabase Auth admin API wrapper, using httpx.MockTransport."""

import json
import uuid
from unittest.mock import patch

import httpx
import pytest

from royally_tuned.config import settings
from royally_tuned.identity import admin
from royally_tuned.identity.admin import (
    IdentityConfigError,
    IdentityError,
    IdentityUser,
    UserNotFoundError,
    get_admin_client,
    get_user_by_id,
    merge_app_metadata,
    update_app_metadata,
)


def _mock_admin(handler):
    """Patch the admin client factory to route requests to ``handler``."""

    def factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url="https://project.supabase.test/auth/v1",
            transport=httpx.MockTransport(handler),
        )

    return patch.object(admin, "get_admin_client", side_effect=factory)


class TestAdminClient:
    @pytest.mark.asyncio
    async def test_service_role_headers(self):
        async with get_admin_client() as client:
            assert str(client.base_url).rstrip("/") == f"{settings.supabase_url.rstrip('/')}/auth/v1"
            assert client.headers["apikey"] == settings.supabase_service_role_key
            assert client.headers["Authorization"] == f"Bearer {settings.supabase_service_role_key}"

    def test_unconfigured(self, monkeypatch):
        monkeypatch.setattr(settings, "supabase_service_role_key", "")
        with pytest.raises(IdentityConfigError):
            get_admin_client()


class TestGetUserById:
    @pytest.mark.asyncio
    async def test_returns_user(self):
        user_id = uuid.uuid4()

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == f"/auth/v1/admin/users/{user_id}"
            return httpx.Response(
                200,
                json={
                    "id": str(user_id),
                    "email": "a@test.com",
                    "app_metadata": {"provider": "email", "stripe_customer_id": "cus_1"},
                },
            )

        with _mock_admin(handler):
            user = await get_user_by_id(user_id)

        assert user.id == user_id
        assert user.email == "a@test.com"
        assert user.stripe_customer_id == "cus_1"
        assert user.subscription_status is None

    @pytest.mark.asyncio
    async def test_not_found(self):
        with _mock_admin(lambda request: httpx.Response(404, json={"msg": "User not found"})):
            with pytest.raises(UserNotFoundError):
                await get_user_by_id(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_server_error(self):
        with _mock_admin(lambda request: httpx.Response(503, text="unavailable")):
            with pytest.raises(IdentityError) as exc_info:
                await get_user_by_id(uuid.uuid4())
        assert not isinstance(exc_info.value, UserNotFoundError)


class TestUpdateAppMetadata:
    @pytest.mark.asyncio
    async def test_sends_app_metadata(self):
        user_id = uuid.uuid4()
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"user": {"id": str(user_id), "email": "a@test.com", "app_metadata": seen["body"]["app_metadata"]}},
            )

        with _mock_admin(handler):
            user = await update_app_metadata(user_id, {"subscription_status": "active"})

        assert seen["method"] == "PUT"
        assert seen["body"] == {"app_metadata": {"subscription_status": "active"}}
        assert user.subscription_status == "active"

    @pytest.mark.asyncio
    async def test_not_found(self):
        with _mock_admin(lambda request: httpx.Response(404)):
            with pytest.raises(UserNotFoundError):
                await update_app_metadata(uuid.uuid4(), {})


class TestMergeAppMetadata:
    def test_layers_fields_over_existing(self):
        user = IdentityUser(id=uuid.uuid4(), email=None, app_metadata={"provider": "email", "subscription_status": "free"})
        merged = merge_app_metadata(user, {"subscription_status": "active", "stripe_customer_id": "cus_1"})
        assert merged == {"provider": "email", "subscription_status": "active", "stripe_customer_id": "cus_1"}

    def test_none_values_do_not_erase(self):
        user = IdentityUser(id=uuid.uuid4(), email=None, app_metadata={"stripe_customer_id": "cus_1"})
        assert merge_app_metadata(user, {"stripe_customer_id": None}) == {"stripe_customer_id": "cus_1"}
        assert user.app_metadata == {"stripe_customer_id": "cus_1"}


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestTransportFailures:
    @pytest.mark.asyncio
    async def test_lookup_connect_error_becomes_identity_error(self):
        with _mock_admin(_unreachable):
            with pytest.raises(IdentityError) as exc_info:
                await get_user_by_id(uuid.uuid4())
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert not isinstance(exc_info.value, UserNotFoundError)

    @pytest.mark.asyncio
    async def test_update_timeout_becomes_identity_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with _mock_admin(handler):
            with pytest.raises(IdentityError):
                await update_app_metadata(uuid.uuid4(), {"subscription_status": "active"})
