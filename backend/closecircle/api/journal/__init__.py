"""Journal API routes."""
from fastapi import APIRouter

from closecircle.api.journal import routes_journals, routes_reactions, routes_upload

router = APIRouter()

router.include_router(routes_journals.router, prefix="/journals", tags=["journals"])
router.include_router(routes_reactions.router, prefix="/reactions", tags=["reactions"])
router.include_router(routes_upload.router, prefix="/upload", tags=["upload"])
