"""Errors raised by the backend-as-a-service clients.

The taxonomy is flat: every failure ends up as a single human-readable
message in the dashboard banner, whatever its cause.
"""

from __future__ import annotations

import httpx

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."

# Body fields that carry a message, in lookup order
_MESSAGE_FIELDS = ("error", "message", "msg", "error_description")


class BackendError(Exception):
    """A remote call failed."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class FunctionError(BackendError):
    """A remote function answered with a non-2xx status."""


class NotAuthenticatedError(BackendError):
    """An authenticated call was attempted without a session."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, status_code=401)


def extract_error_message(
    payload: object,
    fallback: str = GENERIC_ERROR_MESSAGE,
    fields: tuple[str, ...] = _MESSAGE_FIELDS,
) -> str:
    """Pull a message string out of an error response body."""
    if isinstance(payload, dict):
        for field in fields:
            value = payload.get(field)
            if isinstance(value, str) and value.strip():
                return value
            # {"error": {"message": "..."}}
            if isinstance(value, dict):
                nested = extract_error_message(value, fallback="", fields=fields)
                if nested:
                    return nested
    return fallback


def safe_json(resp: httpx.Response) -> object:
    """Decode a response body, returning {} when it is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return {}


def error_from_response(
    resp: httpx.Response,
    fallback: str = GENERIC_ERROR_MESSAGE,
    fields: tuple[str, ...] = _MESSAGE_FIELDS,
) -> BackendError:
    payload = safe_json(resp)
    code = payload.get("code") if isinstance(payload, dict) else None
    return BackendError(
        extract_error_message(payload, fallback, fields),
        status_code=resp.status_code,
        code=str(code) if code is not None else None,
    )
