"""Media domain services."""
import logging
import time
from pathlib import PurePosixPath
from typing import Optional, Protocol
from urllib.parse import urlsplit

from closecircle.domain.common.errors import AuthorizationError, UpstreamError
from closecircle.domain.identity.services import UserRepository
from closecircle.domain.media.models import ImageUpload, StoredImage

logger = logging.getLogger(__name__)


class MediaHost(Protocol):
    """Image host protocol."""

    async def upload(
        self,
        upload: ImageUpload,
        folder: str,
        public_id: Optional[str] = None,
        transformation: Optional[str] = None,
    ) -> StoredImage:
        """Store an image and return its URL. Raises UpstreamError on failure."""
        ...

    async def delete(self, public_id: str) -> bool:
        """Delete an image. True if it was deleted, False if it did not exist."""
        ...


async def discard_quietly(media_host: MediaHost, image: StoredImage) -> None:
    """Best-effort removal of an image orphaned by a failed database write."""
    try:
        await media_host.delete(image.public_id)
    except UpstreamError as e:
        logger.warning("Could not remove orphaned image %s: %s", image.public_id, e)


class ProfileImageService:
    """Profile pictures live on the media host under a per-user public id."""

    def __init__(
        self,
        media_host: MediaHost,
        user_repo: UserRepository,
        folder: str = "journal-app/profile-images",
        transformation: Optional[str] = None,
        max_upload_bytes: int = 5 * 1024 * 1024,
    ):
        self.media_host = media_host
        self.user_repo = user_repo
        self.folder = folder
        self.transformation = transformation
        self.max_upload_bytes = max_upload_bytes

    @staticmethod
    def owns(user_id: str, public_id: str) -> bool:
        return public_id.rsplit("/", 1)[-1].startswith(f"profile_{user_id}_")

    @staticmethod
    def points_at(url: str, public_id: str) -> bool:
        """Whether a delivery URL serves exactly this public id (file name without extension)."""
        return PurePosixPath(urlsplit(url).path).stem == public_id.rsplit("/", 1)[-1]

    async def upload(self, user_id: str, image: ImageUpload) -> StoredImage:
        """Upload a new picture and point the user's profile at it."""
        image.validate_image(self.max_upload_bytes)
        stored = await self.media_host.upload(
            image,
            folder=self.folder,
            public_id=f"profile_{user_id}_{int(time.time())}",
            transformation=self.transformation,
        )
        try:
            await self.user_repo.update_profile(user_id, {"profile_image": stored.url})
        except Exception:
            await discard_quietly(self.media_host, stored)
            raise
        logger.info("Profile image for %s stored as %s", user_id, stored.public_id)
        return stored

    async def delete(self, user_id: str, public_id: str) -> bool:
        """Remove one of the user's pictures; clears the profile link if it pointed there."""
        if not self.owns(user_id, public_id):
            raise AuthorizationError("Not authorized to delete this image")
        deleted = await self.media_host.delete(public_id)
        user = await self.user_repo.get_by_id(user_id)
        if user is not None and user.profile_image and self.points_at(user.profile_image, public_id):
            await self.user_repo.update_profile(user_id, {"profile_image": None})
        return deleted
