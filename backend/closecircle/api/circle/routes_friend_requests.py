"""Friend request routes."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from closecircle.api.deps import get_current_user, get_friend_request_service
from closecircle.domain.circle.models import FriendRequest, FriendRequestStatus, FriendRequestView, RelationStatus
from closecircle.domain.circle.services import FriendRequestService
from closecircle.domain.identity.models import User

logger = logging.getLogger(__name__)

router = APIRouter()


class SendRequest(BaseModel):
    """Send friend request model."""
    to_user_id: str


class FriendRequestResponse(BaseModel):
    """Friend request response model."""
    id: str
    from_user_id: str
    to_user_id: str
    status: FriendRequestStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def of(cls, request: FriendRequest) -> "FriendRequestResponse":
        return cls(**request.model_dump())


class RelationStatusResponse(BaseModel):
    """Relation status as seen by the current user."""
    status: RelationStatus
    request_id: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


@router.post("/send", response_model=FriendRequestResponse, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    request: SendRequest,
    current_user: User = Depends(get_current_user),
    service: FriendRequestService = Depends(get_friend_request_service),
):
    """Send a friend request."""
    logger.info(f"🔵 [SERVER] Friend request from {current_user.id} to {request.to_user_id}")
    friend_request = await service.send(current_user.id, request.to_user_id)
    return FriendRequestResponse.of(friend_request)


@router.get("/status/{user_id}", response_model=RelationStatusResponse)
async def get_request_status(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: FriendRequestService = Depends(get_friend_request_service),
):
    """Relation status between the current user and another user."""
    relation, friend_request = await service.status_between(current_user.id, user_id)
    return RelationStatusResponse(status=relation, request_id=friend_request.id if friend_request else None)


@router.delete("/cancel/{user_id}", response_model=MessageResponse)
async def cancel_friend_request(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: FriendRequestService = Depends(get_friend_request_service),
):
    """Withdraw a pending request sent to user_id."""
    await service.cancel(current_user.id, user_id)
    return MessageResponse(message="Friend request cancelled")


@router.get("/pending", response_model=list[FriendRequestView])
async def list_pending_requests(
    current_user: User = Depends(get_current_user),
    service: FriendRequestService = Depends(get_friend_request_service),
):
    """Pending requests received by the current user."""
    return await service.list_pending(current_user.id)


@router.get("/sent", response_model=list[FriendRequestView])
async def list_sent_requests(
    current_user: User = Depends(get_current_user),
    service: FriendRequestService = Depends(get_friend_request_service),
):
    """Requests sent by the current user."""
    return await service.list_sent(current_user.id)


@router.post("/accept/{request_id}", response_model=FriendRequestResponse)
async def accept_friend_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    service: FriendRequestService = Depends(get_friend_request_service),
):
    """Accept a request; both users join each other's close circle."""
    logger.info(f"🔵 [SERVER] Accept friend request {request_id} by {current_user.id}")
    friend_request = await service.accept(request_id, current_user.id)
    return FriendRequestResponse.of(friend_request)


@router.post("/reject/{request_id}", response_model=FriendRequestResponse)
async def reject_friend_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    service: FriendRequestService = Depends(get_friend_request_service),
):
    """Reject a request."""
    logger.info(f"🔵 [SERVER] Reject friend request {request_id} by {current_user.id}")
    friend_request = await service.reject(request_id, current_user.id)
    return FriendRequestResponse.of(friend_request)
