"""Media domain models."""
from typing import Optional

from pydantic import BaseModel

from closecircle.domain.common.errors import ValidationError


class ImageUpload(BaseModel):
    """Raw image bytes received from a client."""

    filename: str
    content_type: str
    data: bytes

    def validate_image(self, max_bytes: int) -> None:
        """Only image content types up to max_bytes are accepted."""
        if not (self.content_type or "").startswith("image/"):
            raise ValidationError("Only image files are allowed")
        if not self.data:
            raise ValidationError("Empty file")
        if len(self.data) > max_bytes:
            raise ValidationError(f"File too large (max {max_bytes // (1024 * 1024)}MB)")


class StoredImage(BaseModel):
    """An image held by the media host."""

    url: str
    public_id: str
    width: Optional[int] = None
    height: Optional[int] = None
