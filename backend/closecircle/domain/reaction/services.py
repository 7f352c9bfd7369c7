"""Reaction domain services."""
import logging
from typing import Optional, Protocol

from closecircle.domain.circle.services import CircleRepository, UnitOfWork
from closecircle.domain.common.errors import AuthorizationError, NotFoundError
from closecircle.domain.common.locks import journal_locks
from closecircle.domain.identity.models import PublicProfile
from closecircle.domain.identity.services import UserRepository
from closecircle.domain.journal.models import Journal
from closecircle.domain.journal.services import JournalRepository
from closecircle.domain.journal.visibility import can_view
from closecircle.domain.reaction.models import (
    Reaction,
    ReactionType,
    ReactionView,
    ToggleAction,
    ToggleResult,
)

logger = logging.getLogger(__name__)


class ReactionRepository(Protocol):
    """Reaction repository protocol."""

    async def find(self, journal_id: str, user_id: str, type: ReactionType = ReactionType.LIKE) -> Optional[Reaction]:
        ...

    async def add(self, reaction: Reaction) -> Reaction:
        """Stage a reaction; raises ConflictError if it already exists."""
        ...

    async def remove(self, reaction_id: str) -> None:
        ...

    async def count(self, journal_id: str, type: ReactionType = ReactionType.LIKE) -> int:
        ...

    async def count_likes_for(self, journal_ids: list[str]) -> dict[str, int]:
        ...

    async def list_by_journal(self, journal_id: str) -> list[Reaction]:
        ...

    async def liked_journal_ids(self, user_id: str) -> list[str]:
        ...


class ReactionService:
    """Like toggling and reaction listings."""

    def __init__(
        self,
        reaction_repo: ReactionRepository,
        journal_repo: JournalRepository,
        circle_repo: CircleRepository,
        user_repo: UserRepository,
        uow: UnitOfWork,
    ):
        self.reaction_repo = reaction_repo
        self.journal_repo = journal_repo
        self.circle_repo = circle_repo
        self.user_repo = user_repo
        self.uow = uow

    async def _visible_journal(self, journal_id: str, viewer_id: str) -> Journal:
        journal = await self.journal_repo.get_by_id(journal_id)
        if journal is None:
            raise NotFoundError("Journal", journal_id, message="Journal not found")
        in_circle = journal.author_id != viewer_id and await self.circle_repo.is_member(journal.author_id, viewer_id)
        if not can_view(journal, viewer_id, in_circle):
            raise AuthorizationError("Not authorized to react to this journal")
        return journal

    async def toggle(self, user_id: str, journal_id: str) -> ToggleResult:
        """Add the user's like if absent, remove it if present, and re-sync likes_count.

        Ledger change, recount and write-back share one transaction, serialized per journal.
        """
        await self._visible_journal(journal_id, user_id)
        async with journal_locks.hold(journal_id):
            try:
                existing = await self.reaction_repo.find(journal_id, user_id)
                if existing is not None:
                    await self.reaction_repo.remove(existing.id)
                    action = ToggleAction.REMOVED
                else:
                    await self.reaction_repo.add(Reaction.create(journal_id, user_id))
                    action = ToggleAction.ADDED
                likes_count = await self.reaction_repo.count(journal_id)
                await self.journal_repo.set_likes_count(journal_id, likes_count)
                await self.uow.commit()
            except Exception:
                await self.uow.rollback()
                raise

        logger.info("Like %s on journal %s by %s (now %d)", action.value, journal_id, user_id, likes_count)
        return ToggleResult(action=action, liked=action == ToggleAction.ADDED, likes_count=likes_count)

    async def list_by_journal(self, journal_id: str, viewer_id: str) -> list[ReactionView]:
        """Reactions on a journal the viewer may see, with reacting users' profiles."""
        await self._visible_journal(journal_id, viewer_id)
        reactions = await self.reaction_repo.list_by_journal(journal_id)
        users = await self.user_repo.get_by_ids([r.user_id for r in reactions])
        views = []
        for reaction in reactions:
            user = users.get(reaction.user_id)
            views.append(
                ReactionView(
                    id=reaction.id,
                    journal_id=reaction.journal_id,
                    type=reaction.type,
                    created_at=reaction.created_at,
                    user=PublicProfile.of(user) if user else None,
                )
            )
        return views

    async def liked_journal_ids(self, user_id: str) -> list[str]:
        """Journals the user has liked, most recent first."""
        return await self.reaction_repo.liked_journal_ids(user_id)
