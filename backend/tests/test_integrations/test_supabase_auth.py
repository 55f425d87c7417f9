"""Tests for the auth service client: uses mocked HTTP responses."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from taskboard.integrations.errors import BackendError
from taskboard.integrations.supabase_auth import AuthClient


@pytest.fixture
def client():
    return AuthClient("https://example.supabase.co", "anon-key")


def _patch_async_client(method: str, response=None, side_effect=None):
    mock_instance = AsyncMock()
    target = getattr(mock_instance, method)
    if side_effect is not None:
        target.side_effect = side_effect
    else:
        target.return_value = response
    mock_instance.__aenter__.return_value = mock_instance
    mock_instance.__aexit__.return_value = False
    return patch("taskboard.integrations.supabase_auth.httpx.AsyncClient", return_value=mock_instance), mock_instance


class TestSignIn:
    @pytest.mark.asyncio
    async def test_password_grant_returns_session(self, client):
        body = {
            "access_token": "jwt-abc",
            "refresh_token": "refresh-xyz",
            "expires_in": 3600,
            "user": {"id": "user-1", "email": "alice@example.com"},
        }
        patcher, mock = _patch_async_client("post", httpx.Response(200, json=body))
        with patcher:
            session = await client.sign_in_with_password("alice@example.com", "secret")

        assert session.access_token == "jwt-abc"
        assert session.user_id == "user-1"
        assert session.email == "alice@example.com"
        assert session.expires_in == 3600
        kwargs = mock.post.call_args.kwargs
        assert kwargs["params"] == {"grant_type": "password"}
        assert kwargs["json"] == {"email": "alice@example.com", "password": "secret"}

    @pytest.mark.asyncio
    async def test_rejected_credentials_raise_with_service_message(self, client):
        body = {"error": "invalid_grant", "error_description": "Invalid login credentials"}
        patcher, _ = _patch_async_client("post", httpx.Response(400, json=body))
        with patcher, pytest.raises(BackendError) as exc_info:
            await client.sign_in_with_password("alice@example.com", "wrong")

        assert exc_info.value.message == "Invalid login credentials"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_response_without_user_raises(self, client):
        patcher, _ = _patch_async_client("post", httpx.Response(200, json={"access_token": "jwt"}))
        with patcher, pytest.raises(BackendError):
            await client.sign_in_with_password("alice@example.com", "secret")


class TestGetUser:
    @pytest.mark.asyncio
    async def test_valid_token(self, client):
        patcher, mock = _patch_async_client("get", httpx.Response(200, json={"id": "user-1", "email": "a@b.c"}))
        with patcher:
            session = await client.get_session("jwt-abc")

        assert session is not None
        assert session.user_id == "user-1"
        assert session.access_token == "jwt-abc"
        assert mock.get.call_args.kwargs["headers"]["Authorization"] == "Bearer jwt-abc"

    @pytest.mark.asyncio
    async def test_rejected_token_is_no_session(self, client):
        patcher, _ = _patch_async_client("get", httpx.Response(401, json={"msg": "invalid JWT"}))
        with patcher:
            assert await client.get_session("expired") is None

    @pytest.mark.asyncio
    async def test_network_failure_is_no_session(self, client):
        patcher, _ = _patch_async_client("get", side_effect=httpx.ConnectError("down"))
        with patcher:
            assert await client.get_user("jwt-abc") is None


class TestSignOut:
    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, client):
        patcher, mock = _patch_async_client("post", side_effect=httpx.ConnectError("down"))
        with patcher:
            await client.sign_out("jwt-abc")

        assert mock.post.call_args.args[0].endswith("/auth/v1/logout")
