"""Tests for the object storage client: uses mocked HTTP responses."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from taskboard.integrations.errors import BackendError
from taskboard.integrations.supabase_storage import StorageClient


@pytest.fixture
def client():
    return StorageClient("https://example.supabase.co", "anon-key")


def _patch_async_client(method: str, response=None, side_effect=None):
    mock_instance = AsyncMock()
    target = getattr(mock_instance, method)
    if side_effect is not None:
        target.side_effect = side_effect
    else:
        target.return_value = response
    mock_instance.__aenter__.return_value = mock_instance
    mock_instance.__aexit__.return_value = False
    return patch("taskboard.integrations.supabase_storage.httpx.AsyncClient", return_value=mock_instance), mock_instance


@pytest.mark.asyncio
async def test_upload_headers(client):
    patcher, mock = _patch_async_client("post", httpx.Response(200, json={"Key": "profile-pictures/u1/1.png"}))
    with patcher:
        await client.upload("profile-pictures", "u1/1.png", b"\x89PNG", access_token="jwt", content_type="image/png")

    url = mock.post.call_args.args[0]
    headers = mock.post.call_args.kwargs["headers"]
    assert url == "https://example.supabase.co/storage/v1/object/profile-pictures/u1/1.png"
    assert headers["Content-Type"] == "image/png"
    assert headers["Cache-Control"] == "max-age=3600"
    assert headers["x-upsert"] == "false"
    assert mock.post.call_args.kwargs["content"] == b"\x89PNG"


@pytest.mark.asyncio
async def test_upload_conflict_raises(client):
    patcher, _ = _patch_async_client("post", httpx.Response(409, json={"message": "The resource already exists"}))
    with patcher, pytest.raises(BackendError) as exc_info:
        await client.upload("profile-pictures", "u1/1.png", b"x", access_token="jwt", content_type="image/png")

    assert exc_info.value.message == "The resource already exists"


@pytest.mark.asyncio
async def test_remove_reports_failure_without_raising(client):
    patcher, _ = _patch_async_client("request", side_effect=httpx.ConnectError("down"))
    with patcher:
        assert await client.remove("profile-pictures", ["u1/old.png"], access_token="jwt") is False


@pytest.mark.asyncio
async def test_remove_sends_prefixes(client):
    patcher, mock = _patch_async_client("request", httpx.Response(200, json=[]))
    with patcher:
        assert await client.remove("profile-pictures", ["u1/old.png"], access_token="jwt") is True

    assert mock.request.call_args.args == ("DELETE", "https://example.supabase.co/storage/v1/object/profile-pictures")
    assert mock.request.call_args.kwargs["json"] == {"prefixes": ["u1/old.png"]}


def test_public_url(client):
    assert client.public_url("profile-pictures", "u1/1.png") == (
        "https://example.supabase.co/storage/v1/object/public/profile-pictures/u1/1.png"
    )
