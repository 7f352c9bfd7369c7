"""Reaction routes."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from closecircle.api.deps import get_current_user, get_reaction_service
from closecircle.domain.identity.models import User
from closecircle.domain.reaction.models import ReactionType, ReactionView, ToggleResult
from closecircle.domain.reaction.services import ReactionService

logger = logging.getLogger(__name__)

router = APIRouter()


class ToggleRequest(BaseModel):
    """Toggle reaction request model."""
    journal_id: str
    type: ReactionType = ReactionType.LIKE


@router.post("", response_model=ToggleResult)
async def toggle_reaction(
    request: ToggleRequest,
    current_user: User = Depends(get_current_user),
    reactions: ReactionService = Depends(get_reaction_service),
):
    """Like a journal, or unlike it if already liked."""
    logger.info(f"🔵 [SERVER] Toggle {request.type.value} on journal {request.journal_id} by user: {current_user.id}")
    return await reactions.toggle(current_user.id, request.journal_id)


@router.get("/journal/{journal_id}", response_model=list[ReactionView])
async def list_journal_reactions(
    journal_id: str,
    current_user: User = Depends(get_current_user),
    reactions: ReactionService = Depends(get_reaction_service),
):
    """Reactions on a journal with the reacting users."""
    return await reactions.list_by_journal(journal_id, current_user.id)
