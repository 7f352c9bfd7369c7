"""Profile statistics: likes, reads and writing consistency."""
import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Protocol

from closecircle.domain.common.types import utcnow
from closecircle.domain.identity.models import UserStats

logger = logging.getLogger(__name__)

CONSISTENCY_WINDOW_DAYS = 30


def consistency_score(active_days: int, window_days: int = CONSISTENCY_WINDOW_DAYS) -> int:
    """Percentage of days in the window with at least one entry, rounded half up, clamped to 0..100."""
    if window_days <= 0:
        return 0
    raw = Decimal(active_days) * 100 / Decimal(window_days)
    score = int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(100, score))


def distinct_days(timestamps: Iterable[datetime]) -> set[date]:
    return {ts.date() for ts in timestamps}


class JournalStatsSource(Protocol):
    """Aggregates the stats service needs from the journal store."""

    async def totals_for_author(self, author_id: str) -> tuple[int, int, int]:
        """(journal count, sum of likes_count, sum of reads_count)."""
        ...

    async def created_since(self, author_id: str, since: datetime) -> list[datetime]:
        """created_at of the author's journals created at or after `since`."""
        ...


class StatsRepository(Protocol):
    """Persists cached counters on the user record."""

    async def update_stats(self, user_id: str, total_likes: int, total_reads: int, consistency: int) -> None:
        ...


class StatsService:
    """Recomputes profile aggregates from journal state."""

    def __init__(self, journals: JournalStatsSource, users: Optional[StatsRepository] = None):
        self.journals = journals
        self.users = users

    async def compute(self, user_id: str, now: Optional[datetime] = None) -> UserStats:
        """Compute stats without writing them anywhere."""
        now = now or utcnow()
        count, likes, reads = await self.journals.totals_for_author(user_id)
        since = now - timedelta(days=CONSISTENCY_WINDOW_DAYS)
        days = distinct_days(await self.journals.created_since(user_id, since))
        return UserStats(
            total_likes=likes,
            total_reads=reads,
            consistency=consistency_score(len(days)),
            journals_count=count,
            recent_activity=len(days),
        )

    async def refresh(self, user_id: str) -> UserStats:
        """Recompute and persist the cached counters on the user."""
        stats = await self.compute(user_id)
        if self.users is None:
            raise RuntimeError("StatsService.refresh needs a user repository")
        await self.users.update_stats(user_id, stats.total_likes, stats.total_reads, stats.consistency)
        logger.info(
            "Stats refreshed for %s: likes=%s reads=%s consistency=%s",
            user_id, stats.total_likes, stats.total_reads, stats.consistency,
        )
        return stats
