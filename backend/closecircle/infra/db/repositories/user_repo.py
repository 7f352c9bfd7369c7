"""User repository implementation."""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from closecircle.domain.common.errors import ConflictError
from closecircle.domain.common.types import utcnow
from closecircle.domain.identity.models import User
from closecircle.domain.identity.services import UserRepository
from closecircle.infra.db.models.user import UserModel


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


class UserRepositoryImpl(UserRepository):
    """User repository implementation."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user."""
        model = UserModel.from_entity(user)
        self.session.add(model)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Email or username already in use")
        await self.session.refresh(model)
        return model.to_entity()

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_by_ids(self, user_ids: list[str]) -> dict[str, User]:
        """Get several users keyed by id."""
        if not user_ids:
            return {}
        result = await self.session.execute(select(UserModel).where(UserModel.id.in_(set(user_ids))))
        return {m.id: m.to_entity() for m in result.scalars().all()}

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        result = await self.session.execute(select(UserModel).where(UserModel.email == email))
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by handle."""
        result = await self.session.execute(select(UserModel).where(UserModel.username == username))
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        """Get the user holding a password reset token."""
        result = await self.session.execute(
            select(UserModel).where(UserModel.reset_password_token_hash == token_hash)
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def usernames_with_prefix(self, prefix: str) -> set[str]:
        """All handles starting with prefix."""
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        result = await self.session.execute(
            select(UserModel.username).where(UserModel.username.like(f"{escaped}%", escape="\\"))
        )
        return set(result.scalars().all())

    async def update_profile(self, user_id: str, values: dict) -> User:
        """Write profile fields."""
        if values:
            try:
                await self.session.execute(
                    update(UserModel)
                    .where(UserModel.id == user_id)
                    .values(**values, updated_at=utcnow())
                )
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
                raise ConflictError("Username is already taken")
        return await self.get_by_id(user_id)

    async def set_reset_token(self, user_id: str, token_hash: Optional[str], expires_at: Optional[datetime]) -> None:
        """Store or clear the password reset token."""
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(reset_password_token_hash=token_hash, reset_password_expires_at=expires_at)
        )
        await self.session.commit()

    async def set_password(self, user_id: str, password_hash: str) -> None:
        """Replace the password hash and clear any reset token."""
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                password_hash=password_hash,
                reset_password_token_hash=None,
                reset_password_expires_at=None,
                updated_at=utcnow(),
            )
        )
        await self.session.commit()

    async def update_stats(self, user_id: str, total_likes: int, total_reads: int, consistency: int) -> None:
        """Persist cached counters."""
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(total_likes=total_likes, total_reads=total_reads, consistency=consistency)
        )
        await self.session.commit()

    async def search(self, query: str, exclude_user_id: str, limit: int) -> list[User]:
        """Case-insensitive substring match on name or username."""
        pattern = _like_pattern(query)
        result = await self.session.execute(
            select(UserModel)
            .where(
                UserModel.id != exclude_user_id,
                UserModel.is_active.is_(True),
                or_(
                    func.lower(UserModel.name).like(pattern, escape="\\"),
                    UserModel.username.like(pattern, escape="\\"),
                ),
            )
            .order_by(UserModel.username)
            .limit(limit)
        )
        return [m.to_entity() for m in result.scalars().all()]

    async def sample(self, exclude_ids: set[str], limit: int) -> list[User]:
        """Random active users not in exclude_ids."""
        stmt = select(UserModel).where(UserModel.is_active.is_(True))
        if exclude_ids:
            stmt = stmt.where(UserModel.id.not_in(exclude_ids))
        result = await self.session.execute(stmt.order_by(func.random()).limit(limit))
        return [m.to_entity() for m in result.scalars().all()]
