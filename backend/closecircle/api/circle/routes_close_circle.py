"""Close circle routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from closecircle.api.circle.routes_friend_requests import FriendRequestResponse, MessageResponse
from closecircle.api.deps import get_close_circle_service, get_current_user
from closecircle.domain.circle.models import RelationStatus
from closecircle.domain.circle.services import CloseCircleService
from closecircle.domain.identity.models import PublicProfile, User
from closecircle.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


class CircleCountResponse(BaseModel):
    count: int


class AddMemberResponse(BaseModel):
    """accepted when an incoming request was accepted, pending when a request was sent."""
    status: RelationStatus
    request: FriendRequestResponse


@router.get("", response_model=list[PublicProfile])
async def list_close_circle(
    current_user: User = Depends(get_current_user),
    service: CloseCircleService = Depends(get_close_circle_service),
):
    """Members of the current user's close circle."""
    return await service.list_members(current_user.id)


@router.get("/count", response_model=CircleCountResponse)
async def count_close_circle(
    current_user: User = Depends(get_current_user),
    service: CloseCircleService = Depends(get_close_circle_service),
):
    return CircleCountResponse(count=await service.count(current_user.id))


@router.get("/suggested", response_model=list[PublicProfile])
async def suggested_users(
    limit: Optional[int] = Query(None, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    service: CloseCircleService = Depends(get_close_circle_service),
):
    """Random users outside the close circle."""
    return await service.suggest(current_user.id, limit or settings.suggested_users_limit)


@router.post("/{user_id}", response_model=AddMemberResponse)
async def add_to_close_circle(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: CloseCircleService = Depends(get_close_circle_service),
):
    """Accept user_id's pending request, or send them one."""
    logger.info(f"🔵 [SERVER] Close circle add: {current_user.id} -> {user_id}")
    relation, friend_request = await service.add(current_user.id, user_id)
    return AddMemberResponse(status=relation, request=FriendRequestResponse.of(friend_request))


@router.delete("/{user_id}", response_model=MessageResponse)
async def remove_from_close_circle(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: CloseCircleService = Depends(get_close_circle_service),
):
    """Remove a member from both close circles."""
    logger.info(f"🔵 [SERVER] Close circle remove: {current_user.id} -x- {user_id}")
    await service.remove(current_user.id, user_id)
    return MessageResponse(message="Removed from close circle")
