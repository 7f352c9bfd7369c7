"""Image upload routes."""
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from closecircle.api.deps import (
    get_current_user,
    get_journal_service,
    get_profile_image_service,
    read_image_upload,
)
from closecircle.domain.identity.models import User
from closecircle.domain.journal.models import Journal
from closecircle.domain.journal.services import JournalService
from closecircle.domain.media.services import ProfileImageService

logger = logging.getLogger(__name__)

router = APIRouter()


class JournalImageResponse(BaseModel):
    message: str
    journal: Journal


class ProfileImageResponse(BaseModel):
    message: str
    url: str
    public_id: str


class DeleteImageResponse(BaseModel):
    message: str
    deleted: bool


@router.post("/journal/{journal_id}", response_model=JournalImageResponse)
async def upload_journal_image(
    journal_id: str,
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    journals: JournalService = Depends(get_journal_service),
):
    """Append an image to one of the current user's journals."""
    logger.info(f"🔵 [SERVER] Journal image upload for {journal_id} by user: {current_user.id}")
    journal = await journals.attach_image(journal_id, current_user.id, await read_image_upload(image))
    return JournalImageResponse(message="Image uploaded successfully", journal=journal)


@router.post("/profile-image", response_model=ProfileImageResponse)
async def upload_profile_image(
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    profile_images: ProfileImageService = Depends(get_profile_image_service),
):
    """Replace the current user's profile picture."""
    logger.info(f"🔵 [SERVER] Profile image upload by user: {current_user.id}")
    stored = await profile_images.upload(current_user.id, await read_image_upload(image))
    return ProfileImageResponse(message="Profile image uploaded successfully", url=stored.url, public_id=stored.public_id)


@router.delete("/profile-image/{public_id:path}", response_model=DeleteImageResponse)
async def delete_profile_image(
    public_id: str,
    current_user: User = Depends(get_current_user),
    profile_images: ProfileImageService = Depends(get_profile_image_service),
):
    """Delete one of the current user's profile pictures from the media host."""
    deleted = await profile_images.delete(current_user.id, public_id)
    message = "Image deleted successfully" if deleted else "Image not found or already deleted"
    return DeleteImageResponse(message=message, deleted=deleted)
