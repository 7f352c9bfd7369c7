"""Friend request repository implementation."""
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from closecircle.domain.circle.models import FriendRequest, FriendRequestStatus, pair_key
from closecircle.domain.circle.services import FriendRequestRepository
from closecircle.domain.common.errors import ConflictError
from closecircle.domain.common.types import utcnow
from closecircle.infra.db.models.friend_request import FriendRequestModel


class FriendRequestRepositoryImpl(FriendRequestRepository):
    """Friend request repository implementation."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, request: FriendRequest) -> FriendRequest:
        """Insert a pending request."""
        model = FriendRequestModel.from_entity(request)
        self.session.add(model)
        try:
            await self.session.commit()
        except IntegrityError:
            # partial unique index on pair_key while pending
            await self.session.rollback()
            raise ConflictError("Friend request already pending")
        await self.session.refresh(model)
        return model.to_entity()

    async def get_by_id(self, request_id: str) -> Optional[FriendRequest]:
        """Get request by ID."""
        result = await self.session.execute(select(FriendRequestModel).where(FriendRequestModel.id == request_id))
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_pending_between(self, user_a: str, user_b: str) -> Optional[FriendRequest]:
        """The pending request between two users, in either direction."""
        result = await self.session.execute(
            select(FriendRequestModel).where(
                FriendRequestModel.pair_key == pair_key(user_a, user_b),
                FriendRequestModel.status == FriendRequestStatus.PENDING,
            )
        )
        model = result.scalars().first()
        return model.to_entity() if model else None

    async def get_pending_from(self, from_user_id: str, to_user_id: str) -> Optional[FriendRequest]:
        """The pending request sent by from_user_id to to_user_id."""
        result = await self.session.execute(
            select(FriendRequestModel).where(
                FriendRequestModel.from_user_id == from_user_id,
                FriendRequestModel.to_user_id == to_user_id,
                FriendRequestModel.status == FriendRequestStatus.PENDING,
            )
        )
        model = result.scalars().first()
        return model.to_entity() if model else None

    async def has_accepted_between(self, user_a: str, user_b: str) -> bool:
        """Whether an accepted request exists between two users."""
        result = await self.session.execute(
            select(FriendRequestModel.id)
            .where(
                FriendRequestModel.pair_key == pair_key(user_a, user_b),
                FriendRequestModel.status == FriendRequestStatus.ACCEPTED,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def latest_between(self, user_a: str, user_b: str) -> Optional[FriendRequest]:
        """Most recent request between two users, in either direction."""
        result = await self.session.execute(
            select(FriendRequestModel)
            .where(FriendRequestModel.pair_key == pair_key(user_a, user_b))
            .order_by(FriendRequestModel.created_at.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def transition_if_pending(self, request_id: str, status: FriendRequestStatus) -> bool:
        """Conditional status update; the caller commits."""
        result = await self.session.execute(
            update(FriendRequestModel)
            .where(
                FriendRequestModel.id == request_id,
                FriendRequestModel.status == FriendRequestStatus.PENDING,
            )
            .values(status=status, updated_at=utcnow())
        )
        return result.rowcount == 1

    async def delete_pending(self, from_user_id: str, to_user_id: str) -> bool:
        """Delete a pending request from sender to recipient."""
        result = await self.session.execute(
            delete(FriendRequestModel).where(
                FriendRequestModel.from_user_id == from_user_id,
                FriendRequestModel.to_user_id == to_user_id,
                FriendRequestModel.status == FriendRequestStatus.PENDING,
            )
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete_resolved_between(self, user_a: str, user_b: str) -> None:
        """Delete accepted and rejected requests between two users; the caller commits."""
        await self.session.execute(
            delete(FriendRequestModel).where(
                FriendRequestModel.pair_key == pair_key(user_a, user_b),
                FriendRequestModel.status != FriendRequestStatus.PENDING,
            )
        )

    async def list_received_pending(self, user_id: str) -> list[FriendRequest]:
        """Pending requests addressed to a user, newest first."""
        result = await self.session.execute(
            select(FriendRequestModel)
            .where(
                FriendRequestModel.to_user_id == user_id,
                FriendRequestModel.status == FriendRequestStatus.PENDING,
            )
            .order_by(FriendRequestModel.created_at.desc())
        )
        return [m.to_entity() for m in result.scalars().all()]

    async def list_sent(self, user_id: str) -> list[FriendRequest]:
        """Requests sent by a user, newest first."""
        result = await self.session.execute(
            select(FriendRequestModel)
            .where(FriendRequestModel.from_user_id == user_id)
            .order_by(FriendRequestModel.created_at.desc())
        )
        return [m.to_entity() for m in result.scalars().all()]
