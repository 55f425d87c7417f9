"""Auth service client: password sign-in, user lookup, sign-out.

Talks to the GoTrue endpoints of the backend-as-a-service platform
(`/auth/v1/...`). Sessions are issued and verified remotely; nothing is
decoded or trusted locally.
"""

from __future__ import annotations

import logging

import httpx
from taskboard.integrations.errors import BackendError, error_from_response, safe_json
from taskboard.security.session import Session

logger = logging.getLogger(__name__)

# The auth service puts a machine code in "error" and the readable text elsewhere
_AUTH_MESSAGE_FIELDS = ("error_description", "msg", "message", "error")


class AuthClient:
    """Client for the platform's auth API."""

    def __init__(self, base_url: str, api_key: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token or self._api_key}",
            "Accept": "application/json",
        }

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Exchange email + password for a session.

        Raises BackendError with the service's message on rejection.
        """
        url = f"{self._base_url}/auth/v1/token"
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    url,
                    params={"grant_type": "password"},
                    json={"email": email, "password": password},
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            logger.warning("Sign-in request failed: %s", e)
            raise BackendError(f"Sign-in failed: {e}") from e

        if resp.status_code >= 400:
            raise error_from_response(resp, fallback="Invalid login credentials", fields=_AUTH_MESSAGE_FIELDS)

        data = safe_json(resp)
        if not isinstance(data, dict):
            raise BackendError("Sign-in response did not include a session")
        user = data.get("user") or {}
        if not data.get("access_token") or not user.get("id"):
            raise BackendError("Sign-in response did not include a session")

        return Session(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            user_id=user["id"],
            email=user.get("email"),
        )

    async def get_user(self, access_token: str) -> dict | None:
        """Look up the user behind an access token.

        Returns the user record, or None when the token is invalid or the
        lookup fails for any reason.
        """
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(
                    f"{self._base_url}/auth/v1/user",
                    headers=self._headers(access_token),
                )
            if resp.status_code >= 400:
                logger.debug("User lookup rejected (HTTP %d)", resp.status_code)
                return None
            data = safe_json(resp)
            if isinstance(data, dict) and data.get("id"):
                return data
            return None
        except Exception as e:
            logger.debug("User lookup failed: %s", e)
            return None

    async def get_session(self, access_token: str) -> Session | None:
        """Resolve a token into a Session, or None."""
        user = await self.get_user(access_token)
        if user is None:
            return None
        return Session(access_token=access_token, user_id=user["id"], email=user.get("email"))

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session remotely. Best-effort: failures are logged."""
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    f"{self._base_url}/auth/v1/logout",
                    headers=self._headers(access_token),
                )
            if resp.status_code >= 400:
                logger.info("Sign-out rejected (HTTP %d)", resp.status_code)
        except httpx.HTTPError as e:
            logger.warning("Sign-out request failed: %s", e)
