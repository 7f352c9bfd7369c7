"""Tests for the consistency score and stats aggregation."""
from datetime import datetime, timedelta

import pytest

from closecircle.domain.identity.stats import StatsService, consistency_score


class FakeJournalStats:
    def __init__(self, totals=(0, 0, 0), created=None):
        self.totals = totals
        self.created = created or []
        self.since = None

    async def totals_for_author(self, author_id):
        return self.totals

    async def created_since(self, author_id, since):
        self.since = since
        return [ts for ts in self.created if ts >= since]


class FakeStatsRepo:
    def __init__(self):
        self.saved = {}

    async def update_stats(self, user_id, total_likes, total_reads, consistency):
        self.saved[user_id] = (total_likes, total_reads, consistency)


class TestConsistencyScore:
    """Percentage of active days in a 30-day window."""

    @pytest.mark.parametrize(
        "active_days, expected",
        [(0, 0), (1, 3), (5, 17), (15, 50), (29, 97), (30, 100)],
    )
    def test_rounding(self, active_days, expected):
        assert consistency_score(active_days) == expected

    def test_half_rounds_up(self):
        assert consistency_score(3, window_days=8) == 38

    def test_clamped(self):
        assert consistency_score(45) == 100
        assert consistency_score(-3) == 0

    def test_empty_window(self):
        assert consistency_score(4, window_days=0) == 0


class TestStatsService:
    """compute() and refresh()."""

    async def test_compute_counts_distinct_days_in_window(self):
        now = datetime(2026, 10, 17, 12, 0)
        created = [
            now - timedelta(hours=1),
            now - timedelta(hours=2),
            now - timedelta(days=3),
            now - timedelta(days=29),
            now - timedelta(days=31),
        ]
        source = FakeJournalStats(totals=(5, 7, 40), created=created)

        stats = await StatsService(source).compute("u1", now=now)

        assert source.since == now - timedelta(days=30)
        assert stats.journals_count == 5
        assert stats.total_likes == 7
        assert stats.total_reads == 40
        assert stats.recent_activity == 3
        assert stats.consistency == 10

    async def test_refresh_persists(self):
        source = FakeJournalStats(totals=(1, 2, 3))
        repo = FakeStatsRepo()
        stats = await StatsService(source, repo).refresh("u1")
        assert repo.saved["u1"] == (2, 3, stats.consistency)

    async def test_refresh_needs_repository(self):
        with pytest.raises(RuntimeError):
            await StatsService(FakeJournalStats()).refresh("u1")
