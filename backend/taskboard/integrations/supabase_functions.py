"""Remote function client: bearer-authenticated POSTs to `/functions/v1/<name>`."""

from __future__ import annotations

import logging

import httpx
from taskboard.integrations.errors import (
    BackendError,
    FunctionError,
    NotAuthenticatedError,
    extract_error_message,
    safe_json,
)

logger = logging.getLogger(__name__)

# Function bodies report failures in `error` only
_FUNCTION_MESSAGE_FIELDS = ("error",)


class FunctionsClient:
    """Invokes serverless functions on the platform."""

    def __init__(self, base_url: str, api_key: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    async def invoke(self, name: str, payload: dict, *, access_token: str | None) -> dict:
        """POST `payload` to a function and return its JSON body.

        Raises NotAuthenticatedError before sending anything when there is
        no access token, and FunctionError on a non-2xx response. The
        message comes from the body's `error` field only; anything else
        gets a generic fallback.
        """
        if not access_token:
            raise NotAuthenticatedError()

        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    f"{self._base_url}/functions/v1/{name}",
                    json=payload,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.warning("Function %s unreachable: %s", name, e)
            raise BackendError(f"Could not reach {name}: {e}") from e

        data = safe_json(resp)
        if resp.status_code >= 400:
            message = extract_error_message(
                data,
                fallback=f"{name} failed (HTTP {resp.status_code})",
                fields=_FUNCTION_MESSAGE_FIELDS,
            )
            raise FunctionError(message, status_code=resp.status_code)

        return data if isinstance(data, dict) else {}
