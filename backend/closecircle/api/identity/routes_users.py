"""User lookup routes."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from closecircle.api.deps import (
    get_current_user,
    get_friend_request_service,
    get_stats_service,
    get_user_service,
)
from closecircle.domain.circle.models import RelationStatus
from closecircle.domain.circle.services import FriendRequestService
from closecircle.domain.identity.models import PublicProfile, User
from closecircle.domain.identity.services import UserService
from closecircle.domain.identity.stats import StatsService
from closecircle.settings import settings

router = APIRouter()


class PublicUserResponse(PublicProfile):
    """Another user's profile: no email, with stats."""
    journals_count: int
    total_likes: int
    total_reads: int
    consistency: int
    created_at: datetime
    relation_status: RelationStatus


class SearchResponse(BaseModel):
    users: list[PublicProfile]


@router.get("/search", response_model=SearchResponse)
async def search_users(
    q: str = Query(..., description="Name or username fragment"),
    limit: Optional[int] = Query(None, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """Search other users by name or username."""
    users = await user_service.search(current_user.id, q, limit or settings.search_users_limit)
    return SearchResponse(users=users)


@router.get("/{user_id}", response_model=PublicUserResponse)
async def get_user_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    stats_service: StatsService = Depends(get_stats_service),
    requests: FriendRequestService = Depends(get_friend_request_service),
):
    """Public profile of a user."""
    user = await user_service.get_user(user_id)
    stats = await stats_service.compute(user.id)
    if user.id == current_user.id:
        relation = RelationStatus.NONE
    else:
        relation, _ = await requests.status_between(current_user.id, user.id)
    return PublicUserResponse(
        **PublicProfile.of(user).model_dump(),
        journals_count=stats.journals_count,
        total_likes=stats.total_likes,
        total_reads=stats.total_reads,
        consistency=stats.consistency,
        created_at=user.created_at,
        relation_status=relation,
    )
