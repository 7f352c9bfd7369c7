"""Identity API routes."""
from fastapi import APIRouter

from closecircle.api.identity import routes_auth, routes_profile, routes_users

router = APIRouter()

router.include_router(routes_auth.router, prefix="/auth", tags=["auth"])
router.include_router(routes_profile.router, prefix="/myprofile", tags=["profile"])
router.include_router(routes_users.router, prefix="/users", tags=["users"])
