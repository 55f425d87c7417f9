"""Profile store: lazily created profile row and profile picture upload."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from pydantic import ValidationError
from taskboard.integrations.errors import BackendError
from taskboard.integrations.supabase_rest import RestClient
from taskboard.integrations.supabase_storage import StorageClient
from taskboard.models.profile import Profile
from taskboard.security.session import Session

logger = logging.getLogger(__name__)

NOT_AN_IMAGE_MESSAGE = "Please select an image file"


def picture_object_key(user_id: str, filename: str, now_ms: int | None = None) -> str:
    """Object key for a new picture: `<user-id>/<epoch-millis>.<extension>`."""
    stamp = int(now_ms if now_ms is not None else time.time() * 1000)
    extension = filename.rsplit(".", 1)[-1]
    return f"{user_id}/{stamp}.{extension}"


def _to_profile(row: dict) -> Profile:
    try:
        return Profile.model_validate(row)
    except ValidationError as e:
        logger.warning("Rejected profile row: %s", e)
        raise BackendError("Received a malformed profile from the data store") from e


def object_key_from_url(url: str) -> str:
    """Recover `<user-id>/<file>` from a public object URL."""
    return "/".join(url.split("/")[-2:])


class ProfileStore:
    """Profile row of the current user plus its picture in object storage."""

    def __init__(
        self,
        rest: RestClient,
        storage: StorageClient,
        session: Session,
        *,
        table: str = "profiles",
        bucket: str = "profile-pictures",
        cache_seconds: int = 3600,
    ) -> None:
        self._rest = rest
        self._storage = storage
        self._session = session
        self._table = table
        self._bucket = bucket
        self._cache_seconds = cache_seconds

    async def get_or_create(self) -> Profile:
        """Return the user's profile, creating it on first use.

        Creation is one conditional upsert that leaves an existing row
        untouched, so concurrent first loads cannot collide.
        """
        token = self._session.access_token
        await self._rest.upsert(
            self._table,
            {
                "id": self._session.user_id,
                "email": self._session.email,
                "profile_picture_url": None,
            },
            access_token=token,
            on_conflict="id",
            ignore_duplicates=True,
        )
        rows = await self._rest.select(
            self._table,
            access_token=token,
            filters={"id": self._session.user_id},
        )
        if not rows:
            raise BackendError("Profile could not be loaded")
        return _to_profile(rows[0])

    async def upload_picture(
        self,
        filename: str,
        content_type: str,
        data: bytes,
        *,
        previous_url: str | None = None,
    ) -> Profile:
        """Replace the profile picture and return the updated profile.

        Raises ValueError for non-image content. The previous picture is
        removed first and the outcome of that removal is not checked.
        """
        if not content_type.startswith("image/"):
            raise ValueError(NOT_AN_IMAGE_MESSAGE)

        token = self._session.access_token
        key = picture_object_key(self._session.user_id, filename)

        if previous_url:
            await self._storage.remove(self._bucket, [object_key_from_url(previous_url)], access_token=token)

        await self._storage.upload(
            self._bucket,
            key,
            data,
            access_token=token,
            content_type=content_type,
            cache_seconds=self._cache_seconds,
            upsert=False,
        )
        public_url = self._storage.public_url(self._bucket, key)

        rows = await self._rest.update(
            self._table,
            {
                "profile_picture_url": public_url,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            access_token=token,
            filters={"id": self._session.user_id},
        )
        logger.info("Profile picture for %s stored at %s", self._session.user_id, key)
        if rows:
            return _to_profile(rows[0])
        return Profile(id=self._session.user_id, email=self._session.email, profile_picture_url=public_url)
