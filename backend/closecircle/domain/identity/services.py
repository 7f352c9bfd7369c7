"""Identity domain services."""
import hashlib
import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Optional, Protocol

from closecircle.domain.common.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from closecircle.domain.common.types import utcnow
from closecircle.domain.identity.models import (
    BIO_MAX_LENGTH,
    AuthTokens,
    FederatedProfile,
    PublicProfile,
    User,
    normalize_username,
)

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_BYTES = 72  # bcrypt input limit
USERNAME_RE = re.compile(r"^[a-z0-9_.]{3,30}$")
SEARCH_MIN_LENGTH = 2


class UserRepository(Protocol):
    """User repository protocol."""

    async def create(self, user: User) -> User:
        """Create a new user. Raises ConflictError on a duplicate email or username."""
        ...

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        ...

    async def get_by_ids(self, user_ids: list[str]) -> dict[str, User]:
        """Get several users keyed by id."""
        ...

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        ...

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by handle."""
        ...

    async def get_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        """Get the user holding a password reset token."""
        ...

    async def usernames_with_prefix(self, prefix: str) -> set[str]:
        """All handles starting with prefix."""
        ...

    async def update_profile(self, user_id: str, values: dict) -> User:
        """Write profile fields."""
        ...

    async def set_reset_token(self, user_id: str, token_hash: Optional[str], expires_at: Optional[datetime]) -> None:
        """Store or clear the password reset token."""
        ...

    async def set_password(self, user_id: str, password_hash: str) -> None:
        """Replace the password hash and clear any reset token."""
        ...

    async def update_stats(self, user_id: str, total_likes: int, total_reads: int, consistency: int) -> None:
        """Persist cached counters."""
        ...

    async def search(self, query: str, exclude_user_id: str, limit: int) -> list[User]:
        """Case-insensitive substring match on name or username."""
        ...

    async def sample(self, exclude_ids: set[str], limit: int) -> list[User]:
        """Random active users not in exclude_ids."""
        ...


class PasswordResetMailer(Protocol):
    """Delivers password reset links."""

    async def send_password_reset(self, to_email: str, name: str, reset_url: str) -> None:
        ...


class PasswordHasher(Protocol):
    """One-way password hashing."""

    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, password_hash: str) -> bool:
        ...


class TokenIssuer(Protocol):
    """Signs and verifies access/refresh tokens."""

    def issue(self, user_id: str) -> AuthTokens:
        """Access + refresh pair for a user."""
        ...

    def decode(self, token: str) -> Optional[dict]:
        """Verified claims, or None if the token is invalid or expired."""
        ...


def hash_reset_token(token: str) -> str:
    """Reset tokens are stored as SHA-256 hex digests."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _validate_password(password: str) -> None:
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")


def _validate_username(username: str) -> str:
    handle = normalize_username(username or "")
    if not USERNAME_RE.match(handle):
        raise ValidationError(
            "Username must be 3-30 characters of letters, digits, underscores or dots"
        )
    return handle


def handle_base(display_name: Optional[str], email: str) -> str:
    """Base for an auto-generated handle: display name lower-cased without whitespace, else email local part."""
    base = re.sub(r"\s+", "", (display_name or "").lower())
    base = re.sub(r"[^a-z0-9_.]", "", base)
    if len(base) < 3:
        base = re.sub(r"[^a-z0-9_.]", "", email.split("@", 1)[0].lower())
    if len(base) < 3:
        base = f"user{base}"
    return base[:26]


def pick_unique_handle(base: str, taken: set[str]) -> str:
    """base, then base1, base2, ... until one is free."""
    if base not in taken:
        return base
    counter = 1
    while f"{base}{counter}" in taken:
        counter += 1
    return f"{base}{counter}"


class AuthService:
    """Registration, login, tokens, federated login and password reset."""

    def __init__(
        self,
        user_repo: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        mailer: Optional[PasswordResetMailer] = None,
    ):
        self.user_repo = user_repo
        self.hasher = hasher
        self.tokens = tokens
        self.mailer = mailer

    async def register(self, name: str, username: str, email: str, password: str) -> tuple[User, AuthTokens]:
        """Create a password account and sign it in."""
        if not (name or "").strip():
            raise ValidationError("Name is required")
        handle = _validate_username(username)
        _validate_password(password)
        email = email.strip().lower()

        if await self.user_repo.get_by_email(email):
            logger.warning("Register rejected: email already in use: %s", email)
            raise ConflictError("Email already in use")
        if await self.user_repo.get_by_username(handle):
            logger.warning("Register rejected: username already taken: %s", handle)
            raise ConflictError("Username already taken")

        user = User.create(name=name, username=handle, email=email, password_hash=self.hasher.hash(password))
        user = await self.user_repo.create(user)
        logger.info("Registered user %s (@%s)", user.id, user.username)
        return user, self.tokens.issue(user.id)

    async def login(self, identifier: str, password: str) -> tuple[User, AuthTokens]:
        """Sign in with a username or email plus password."""
        identifier = (identifier or "").strip()
        if not identifier or not password:
            raise ValidationError("Username and password are required")
        if "@" in identifier:
            user = await self.user_repo.get_by_email(identifier.lower())
        else:
            user = await self.user_repo.get_by_username(normalize_username(identifier))
        if user is None or not user.password_hash or not self.hasher.verify(password, user.password_hash):
            logger.warning("Login failed for %s", identifier)
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthorizationError("Account is disabled")
        logger.info("User %s logged in", user.id)
        return user, self.tokens.issue(user.id)

    async def refresh(self, refresh_token: str) -> AuthTokens:
        """Exchange a refresh token for a new pair."""
        payload = self.tokens.decode(refresh_token)
        if payload is None or payload.get("type") != "refresh" or not payload.get("sub"):
            raise AuthenticationError("Invalid refresh token")
        user = await self.user_repo.get_by_id(payload["sub"])
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid refresh token")
        return self.tokens.issue(user.id)

    async def login_federated(self, profile: FederatedProfile) -> tuple[User, AuthTokens]:
        """Sign in an externally verified identity, creating the account on first login.

        Accounts are matched by email, so a federated login reaches an existing
        password account with the same address.
        """
        email = profile.email.strip().lower()
        user = await self.user_repo.get_by_email(email)
        if user is None:
            base = handle_base(profile.display_name, email)
            taken = await self.user_repo.usernames_with_prefix(base)
            handle = pick_unique_handle(base, taken)
            user = User.create(
                name=(profile.display_name or handle).strip(),
                username=handle,
                email=email,
                profile_image=profile.picture,
            )
            user = await self.user_repo.create(user)
            logger.info("Created %s account %s (@%s)", profile.provider, user.id, user.username)
        elif not user.is_active:
            raise AuthorizationError("Account is disabled")
        return user, self.tokens.issue(user.id)

    async def forgot_password(self, email: str, frontend_url: str, expire_minutes: int) -> None:
        """Issue a reset token and mail the link. Unknown addresses are a NotFound."""
        user = await self.user_repo.get_by_email((email or "").strip().lower())
        if user is None:
            raise NotFoundError("User", email, message="No account with that email")
        token = secrets.token_hex(32)
        expires_at = utcnow() + timedelta(minutes=expire_minutes)
        await self.user_repo.set_reset_token(user.id, hash_reset_token(token), expires_at)
        reset_url = f"{frontend_url.rstrip('/')}/reset-password/{token}"
        if self.mailer is None:
            raise RuntimeError("AuthService.forgot_password needs a mailer")
        try:
            await self.mailer.send_password_reset(user.email, user.name, reset_url)
        except Exception:
            await self.user_repo.set_reset_token(user.id, None, None)
            raise
        logger.info("Password reset issued for %s (expires %s)", user.id, expires_at.isoformat())

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using a valid, unexpired reset token."""
        _validate_password(new_password)
        user = await self.user_repo.get_by_reset_token_hash(hash_reset_token(token))
        if user is None or user.reset_password_expires_at is None or user.reset_password_expires_at < utcnow():
            raise ValidationError("Invalid or expired token")
        await self.user_repo.set_password(user.id, self.hasher.hash(new_password))
        logger.info("Password reset completed for %s", user.id)


class UserService:
    """Profiles and user lookup."""

    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    async def get_user(self, user_id: str) -> User:
        """Get user by ID."""
        user = await self.user_repo.get_by_id(user_id)
        if not user or not user.is_active:
            raise NotFoundError("User", user_id, message="User not found")
        return user

    async def update_profile(
        self,
        user: User,
        name: str,
        username: str,
        bio: Optional[str] = None,
        location: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> User:
        """Update own profile. Name and username are required; username stays unique."""
        if not (name or "").strip():
            raise ValidationError("Name and username are required")
        handle = _validate_username(username)
        if bio is not None and len(bio) > BIO_MAX_LENGTH:
            raise ValidationError(f"Bio must be at most {BIO_MAX_LENGTH} characters")
        if handle != user.username:
            existing = await self.user_repo.get_by_username(handle)
            if existing and existing.id != user.id:
                raise ConflictError("Username is already taken")
        values = {"name": name.strip(), "username": handle}
        if bio is not None:
            values["bio"] = bio
        if location is not None:
            values["location"] = location
        if profile_image is not None:
            values["profile_image"] = profile_image
        updated = await self.user_repo.update_profile(user.id, values)
        logger.info("Profile updated for %s", user.id)
        return updated

    async def set_profile_image(self, user_id: str, url: Optional[str]) -> User:
        return await self.user_repo.update_profile(user_id, {"profile_image": url})

    async def search(self, viewer_id: str, query: str, limit: int) -> list[PublicProfile]:
        """Find other users by name or handle."""
        query = (query or "").strip()
        if len(query) < SEARCH_MIN_LENGTH:
            raise ValidationError(f"Search query must be at least {SEARCH_MIN_LENGTH} characters")
        users = await self.user_repo.search(query, exclude_user_id=viewer_id, limit=limit)
        return [PublicProfile.of(u) for u in users]
