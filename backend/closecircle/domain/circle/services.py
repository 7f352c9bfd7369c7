"""Friend request state machine and close-circle maintenance."""
import logging
from typing import Optional, Protocol

from closecircle.domain.circle.models import (
    FriendRequest,
    FriendRequestStatus,
    FriendRequestView,
    RelationStatus,
    pair_key,
)
from closecircle.domain.common.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from closecircle.domain.common.locks import friend_request_locks
from closecircle.domain.identity.models import PublicProfile, User
from closecircle.domain.identity.services import UserRepository

logger = logging.getLogger(__name__)


class UnitOfWork(Protocol):
    """Transaction boundary for mutations spanning several repositories."""

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class FriendRequestRepository(Protocol):
    """Friend request repository protocol."""

    async def create(self, request: FriendRequest) -> FriendRequest:
        """Insert a pending request. Raises ConflictError if the pair already has one."""
        ...

    async def get_by_id(self, request_id: str) -> Optional[FriendRequest]:
        """Get request by ID."""
        ...

    async def get_pending_between(self, user_a: str, user_b: str) -> Optional[FriendRequest]:
        """The pending request between two users, in either direction."""
        ...

    async def get_pending_from(self, from_user_id: str, to_user_id: str) -> Optional[FriendRequest]:
        """The pending request sent by from_user_id to to_user_id."""
        ...

    async def has_accepted_between(self, user_a: str, user_b: str) -> bool:
        """Whether an accepted request exists between two users."""
        ...

    async def latest_between(self, user_a: str, user_b: str) -> Optional[FriendRequest]:
        """Most recent request between two users, in either direction."""
        ...

    async def transition_if_pending(self, request_id: str, status: FriendRequestStatus) -> bool:
        """Set status only while the request is pending; does not commit. False if it was not pending."""
        ...

    async def delete_pending(self, from_user_id: str, to_user_id: str) -> bool:
        """Delete a pending request from sender to recipient and commit. False if none matched."""
        ...

    async def delete_resolved_between(self, user_a: str, user_b: str) -> None:
        """Delete accepted and rejected requests between two users; does not commit."""
        ...

    async def list_received_pending(self, user_id: str) -> list[FriendRequest]:
        """Pending requests addressed to a user, newest first."""
        ...

    async def list_sent(self, user_id: str) -> list[FriendRequest]:
        """Requests sent by a user, newest first."""
        ...


class CircleRepository(Protocol):
    """Close-circle membership repository protocol. Mutations do not commit."""

    async def is_member(self, owner_id: str, member_id: str) -> bool:
        ...

    async def member_ids(self, owner_id: str) -> list[str]:
        ...

    async def list_members(self, owner_id: str) -> list[User]:
        """Members, newest accounts first."""
        ...

    async def count(self, owner_id: str) -> int:
        ...

    async def add_pair(self, user_a: str, user_b: str) -> None:
        """Insert both directions, ignoring rows that already exist."""
        ...

    async def remove_pair(self, user_a: str, user_b: str) -> int:
        """Delete both directions; returns rows removed."""
        ...


class FriendRequestService:
    """Pending -> accepted / rejected / cancelled lifecycle between two users."""

    def __init__(
        self,
        request_repo: FriendRequestRepository,
        circle_repo: CircleRepository,
        user_repo: UserRepository,
        uow: UnitOfWork,
    ):
        self.request_repo = request_repo
        self.circle_repo = circle_repo
        self.user_repo = user_repo
        self.uow = uow

    async def send(self, from_user_id: str, to_user_id: str) -> FriendRequest:
        """Send a request; the pair must have no pending request and no accepted relation."""
        if from_user_id == to_user_id:
            raise ValidationError("Cannot send request to yourself")
        target = await self.user_repo.get_by_id(to_user_id)
        if target is None or not target.is_active:
            raise NotFoundError("User", to_user_id, message="User not found")

        async with friend_request_locks.hold(pair_key(from_user_id, to_user_id)):
            if await self.request_repo.get_pending_between(from_user_id, to_user_id):
                raise ConflictError("Friend request already pending")
            if (
                await self.circle_repo.is_member(from_user_id, to_user_id)
                or await self.request_repo.has_accepted_between(from_user_id, to_user_id)
            ):
                raise ConflictError("Already in close circle")
            request = await self.request_repo.create(FriendRequest.create(from_user_id, to_user_id))

        logger.info("Friend request %s sent: %s -> %s", request.id, from_user_id, to_user_id)
        return request

    async def _load_for_recipient(self, request_id: str, actor_id: str) -> FriendRequest:
        request = await self.request_repo.get_by_id(request_id)
        if request is None:
            raise NotFoundError("FriendRequest", request_id, message="Request not found")
        if request.to_user_id != actor_id:
            raise AuthorizationError("Only the recipient can respond to this request")
        if request.status != FriendRequestStatus.PENDING:
            raise ConflictError("Request already processed")
        return request

    async def accept(self, request_id: str, actor_id: str) -> FriendRequest:
        """Accept a pending request and add both users to each other's circle in one transaction."""
        async with friend_request_locks.hold(request_id):
            request = await self._load_for_recipient(request_id, actor_id)
            try:
                if not await self.request_repo.transition_if_pending(request_id, FriendRequestStatus.ACCEPTED):
                    raise ConflictError("Request already processed")
                await self.circle_repo.add_pair(request.from_user_id, request.to_user_id)
                await self.uow.commit()
            except Exception:
                await self.uow.rollback()
                raise

        logger.info(
            "Friend request %s accepted: %s <-> %s now in close circle",
            request_id, request.from_user_id, request.to_user_id,
        )
        return request.model_copy(update={"status": FriendRequestStatus.ACCEPTED})

    async def reject(self, request_id: str, actor_id: str) -> FriendRequest:
        """Reject a pending request. Circles are untouched."""
        async with friend_request_locks.hold(request_id):
            request = await self._load_for_recipient(request_id, actor_id)
            try:
                if not await self.request_repo.transition_if_pending(request_id, FriendRequestStatus.REJECTED):
                    raise ConflictError("Request already processed")
                await self.uow.commit()
            except Exception:
                await self.uow.rollback()
                raise

        logger.info("Friend request %s rejected by %s", request_id, actor_id)
        return request.model_copy(update={"status": FriendRequestStatus.REJECTED})

    async def cancel(self, from_user_id: str, to_user_id: str) -> None:
        """Sender withdraws a pending request; the record is deleted."""
        if not await self.request_repo.delete_pending(from_user_id, to_user_id):
            raise NotFoundError(
                "FriendRequest", f"{from_user_id}->{to_user_id}", message="Request not found or already processed"
            )
        logger.info("Friend request cancelled: %s -> %s", from_user_id, to_user_id)

    async def status_between(self, viewer_id: str, other_id: str) -> tuple[RelationStatus, Optional[FriendRequest]]:
        """Relation status from the viewer's side plus the request it derives from."""
        request = await self.request_repo.latest_between(viewer_id, other_id)
        if request is None:
            if await self.circle_repo.is_member(viewer_id, other_id):
                return RelationStatus.ACCEPTED, None
            return RelationStatus.NONE, None
        return request.status_for(viewer_id), request

    async def _views(self, requests: list[FriendRequest]) -> list[FriendRequestView]:
        ids = [r.from_user_id for r in requests] + [r.to_user_id for r in requests]
        users = await self.user_repo.get_by_ids(ids)

        def profile(user_id: str) -> Optional[PublicProfile]:
            user = users.get(user_id)
            return PublicProfile.of(user) if user else None

        return [
            FriendRequestView(
                id=r.id,
                status=r.status,
                created_at=r.created_at,
                updated_at=r.updated_at,
                from_user=profile(r.from_user_id),
                to_user=profile(r.to_user_id),
            )
            for r in requests
        ]

    async def list_pending(self, user_id: str) -> list[FriendRequestView]:
        """Pending requests the user has received."""
        return await self._views(await self.request_repo.list_received_pending(user_id))

    async def list_sent(self, user_id: str) -> list[FriendRequestView]:
        """Requests the user has sent."""
        return await self._views(await self.request_repo.list_sent(user_id))


class CloseCircleService:
    """Membership queries and maintenance. Membership only changes through request acceptance or removal."""

    def __init__(
        self,
        circle_repo: CircleRepository,
        request_repo: FriendRequestRepository,
        user_repo: UserRepository,
        requests: FriendRequestService,
        uow: UnitOfWork,
    ):
        self.circle_repo = circle_repo
        self.request_repo = request_repo
        self.user_repo = user_repo
        self.requests = requests
        self.uow = uow

    async def list_members(self, user_id: str) -> list[PublicProfile]:
        return [PublicProfile.of(u) for u in await self.circle_repo.list_members(user_id)]

    async def count(self, user_id: str) -> int:
        return await self.circle_repo.count(user_id)

    async def add(self, user_id: str, target_id: str) -> tuple[RelationStatus, FriendRequest]:
        """Accept the target's pending request if there is one, otherwise send a request to them."""
        if user_id == target_id:
            raise ValidationError("Cannot add yourself")
        target = await self.user_repo.get_by_id(target_id)
        if target is None or not target.is_active:
            raise NotFoundError("User", target_id, message="User not found")
        if await self.circle_repo.is_member(user_id, target_id):
            raise ConflictError("User already in close circle")

        incoming = await self.request_repo.get_pending_from(target_id, user_id)
        if incoming is not None:
            accepted = await self.requests.accept(incoming.id, user_id)
            return RelationStatus.ACCEPTED, accepted
        sent = await self.requests.send(user_id, target_id)
        return RelationStatus.PENDING, sent

    async def remove(self, user_id: str, member_id: str) -> None:
        """Remove a member from both circles and forget the resolved requests between the pair."""
        async with friend_request_locks.hold(pair_key(user_id, member_id)):
            try:
                removed = await self.circle_repo.remove_pair(user_id, member_id)
                if removed == 0:
                    raise NotFoundError("CloseCircleMember", member_id, message="User is not in your close circle")
                await self.request_repo.delete_resolved_between(user_id, member_id)
                await self.uow.commit()
            except Exception:
                await self.uow.rollback()
                raise
        logger.info("Close circle removed: %s <-> %s", user_id, member_id)

    async def suggest(self, user_id: str, limit: int) -> list[PublicProfile]:
        """Random users outside the circle."""
        exclude = set(await self.circle_repo.member_ids(user_id))
        exclude.add(user_id)
        return [PublicProfile.of(u) for u in await self.user_repo.sample(exclude, limit)]
