"""Tests for the remote function client and error extraction."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from taskboard.integrations.errors import (
    GENERIC_ERROR_MESSAGE,
    FunctionError,
    NotAuthenticatedError,
    extract_error_message,
)
from taskboard.integrations.supabase_functions import FunctionsClient


@pytest.fixture
def client():
    return FunctionsClient("https://example.supabase.co", "anon-key")


def _patch_async_client(response):
    mock_instance = AsyncMock()
    mock_instance.post.return_value = response
    mock_instance.__aenter__.return_value = mock_instance
    mock_instance.__aexit__.return_value = False
    return patch("taskboard.integrations.supabase_functions.httpx.AsyncClient", return_value=mock_instance), mock_instance


class TestInvoke:
    @pytest.mark.asyncio
    async def test_success_returns_body(self, client):
        patcher, mock = _patch_async_client(httpx.Response(200, json={"subtasks": ["a", "b"]}))
        with patcher:
            data = await client.invoke("generate-subtasks", {"taskTitle": "Buy milk"}, access_token="jwt")

        assert data == {"subtasks": ["a", "b"]}
        url = mock.post.call_args.args[0]
        kwargs = mock.post.call_args.kwargs
        assert url == "https://example.supabase.co/functions/v1/generate-subtasks"
        assert kwargs["json"] == {"taskTitle": "Buy milk"}
        assert kwargs["headers"]["Authorization"] == "Bearer jwt"

    @pytest.mark.asyncio
    async def test_no_token_aborts_before_sending(self, client):
        patcher, mock = _patch_async_client(httpx.Response(200, json={}))
        with patcher, pytest.raises(NotAuthenticatedError):
            await client.invoke("semantic-search", {"query": "milk"}, access_token=None)

        mock.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_error_field_is_surfaced(self, client):
        patcher, _ = _patch_async_client(httpx.Response(500, json={"error": "OpenAI quota exceeded"}))
        with patcher, pytest.raises(FunctionError) as exc_info:
            await client.invoke("generate-subtasks", {"taskTitle": "x"}, access_token="jwt")

        assert exc_info.value.message == "OpenAI quota exceeded"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_missing_error_field_uses_fallback(self, client):
        patcher, _ = _patch_async_client(httpx.Response(502, text="Bad Gateway"))
        with patcher, pytest.raises(FunctionError) as exc_info:
            await client.invoke("semantic-search", {"query": "x"}, access_token="jwt")

        assert exc_info.value.message == "semantic-search failed (HTTP 502)"

    @pytest.mark.asyncio
    async def test_other_message_fields_are_not_surfaced(self, client):
        body = {"message": "internal detail", "msg": "stack trace", "error_description": "db host"}
        patcher, _ = _patch_async_client(httpx.Response(500, json=body))
        with patcher, pytest.raises(FunctionError) as exc_info:
            await client.invoke("generate-subtasks", {"taskTitle": "x"}, access_token="jwt")

        assert exc_info.value.message == "generate-subtasks failed (HTTP 500)"


class TestExtractErrorMessage:
    def test_lookup_order(self):
        assert extract_error_message({"error": "e", "message": "m"}) == "e"
        assert extract_error_message({"message": "m"}) == "m"
        assert extract_error_message({"msg": "x"}) == "x"

    def test_nested_error_object(self):
        assert extract_error_message({"error": {"message": "nested"}}) == "nested"

    def test_fallbacks(self):
        assert extract_error_message({}) == GENERIC_ERROR_MESSAGE
        assert extract_error_message(["not", "a", "dict"], fallback="nope") == "nope"
        assert extract_error_message({"error": "   "}, fallback="blank") == "blank"
