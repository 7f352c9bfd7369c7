"""Identity domain models."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from closecircle.domain.common.types import generate_id, utcnow

BIO_MAX_LENGTH = 500


class User(BaseModel):
    """User domain model."""

    id: str
    name: str
    username: str
    email: EmailStr
    password_hash: Optional[str] = None  # None for federated accounts
    profile_image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    total_likes: int = 0
    total_reads: int = 0
    consistency: int = 0
    reset_password_token_hash: Optional[str] = None
    reset_password_expires_at: Optional[datetime] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        name: str,
        username: str,
        email: str,
        password_hash: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> "User":
        """Create a new user."""
        now = utcnow()
        return cls(
            id=generate_id(),
            name=name.strip(),
            username=normalize_username(username),
            email=email.strip().lower(),
            password_hash=password_hash,
            profile_image=profile_image,
            created_at=now,
            updated_at=now,
        )


class PublicProfile(BaseModel):
    """Profile fields other users may see (never the email)."""

    id: str
    name: str
    username: str
    profile_image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def of(cls, user: User) -> "PublicProfile":
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            profile_image=user.profile_image,
            bio=user.bio,
            location=user.location,
        )


class UserStats(BaseModel):
    """Aggregates recomputed from a user's journals."""

    total_likes: int = 0
    total_reads: int = 0
    consistency: int = 0
    journals_count: int = 0
    recent_activity: int = 0  # journals created in the consistency window


class FederatedProfile(BaseModel):
    """Identity asserted by an external login provider."""

    provider: str
    subject: str
    email: EmailStr
    display_name: Optional[str] = None
    picture: Optional[str] = None


class AuthTokens(BaseModel):
    """Access + refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def normalize_username(username: str) -> str:
    """Handles are stored trimmed and lower-case."""
    return username.strip().lower()
