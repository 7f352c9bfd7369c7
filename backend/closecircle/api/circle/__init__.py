"""Close circle API routes."""
from fastapi import APIRouter

from closecircle.api.circle import routes_close_circle, routes_friend_requests

router = APIRouter()

router.include_router(routes_friend_requests.router, prefix="/friend-requests", tags=["friend-requests"])
router.include_router(routes_close_circle.router, prefix="/close-circle", tags=["close-circle"])
