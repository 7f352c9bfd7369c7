"""Own profile routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from closecircle.api.deps import get_current_user, get_stats_service, get_user_service
from closecircle.api.identity.routes_auth import UserResponse
from closecircle.domain.identity.models import User, UserStats
from closecircle.domain.identity.services import UserService
from closecircle.domain.identity.stats import StatsService

logger = logging.getLogger(__name__)

router = APIRouter()


class UpdateProfileRequest(BaseModel):
    """Update profile request. name and username are required."""
    name: str
    username: str
    bio: Optional[str] = None
    location: Optional[str] = None
    profile_image: Optional[str] = None  # image URL


class MyProfileResponse(BaseModel):
    """Own account plus live stats."""
    user: UserResponse
    stats: UserStats


class StatsRefreshResponse(BaseModel):
    message: str
    stats: UserStats


@router.get("", response_model=MyProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    stats_service: StatsService = Depends(get_stats_service),
):
    """Get current user's profile with stats."""
    stats = await stats_service.compute(current_user.id)
    return MyProfileResponse(user=UserResponse.of(current_user), stats=stats)


@router.put("", response_model=UserResponse)
async def update_my_profile(
    request: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """Update current user's profile."""
    logger.info(f"🔵 [SERVER] Profile update for user: {current_user.id}")
    user = await user_service.update_profile(
        current_user,
        name=request.name,
        username=request.username,
        bio=request.bio.strip() if request.bio is not None else None,
        location=request.location.strip() if request.location is not None else None,
        profile_image=request.profile_image.strip() if request.profile_image is not None else None,
    )
    return UserResponse.of(user)


@router.get("/stats", response_model=UserStats)
async def get_my_stats(
    current_user: User = Depends(get_current_user),
    stats_service: StatsService = Depends(get_stats_service),
):
    """Likes, reads and consistency computed from the user's journals."""
    return await stats_service.compute(current_user.id)


@router.post("/stats/refresh", response_model=StatsRefreshResponse)
async def refresh_my_stats(
    current_user: User = Depends(get_current_user),
    stats_service: StatsService = Depends(get_stats_service),
):
    """Recompute and store the cached counters on the user."""
    stats = await stats_service.refresh(current_user.id)
    return StatsRefreshResponse(message="Stats updated successfully", stats=stats)
