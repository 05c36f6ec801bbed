"""
Leaderboard Gateway

Ranks users by a metric over a timeframe. Raw values come from a
leaderboard data provider: any object with
    async fetch_scores(metric: str, timeframe: str) -> List[RawScore]

Ranking rules:
- descending by value, ties keep the provider's order
- rank is the 1-based position
- badge tier (gold/silver/bronze) depends on rank alone
"""

import logging
import random
from enum import Enum
from typing import List, Optional, Sequence, Union

from learnquest.config import LEADERBOARD_DEFAULT_LIMIT
from learnquest.gamification.xp_system import calculate_level
from learnquest.models.gamification import LeaderboardEntry, LeaderboardResult, RawScore

logger = logging.getLogger(__name__)


class LeaderboardMetric(str, Enum):
    XP = "xp"
    STREAK = "streak"


class Timeframe(str, Enum):
    ALL = "all"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


BADGE_TIERS = {1: "gold", 2: "silver", 3: "bronze"}


def rank_scores(scores: Sequence[RawScore], metric: LeaderboardMetric) -> List[LeaderboardEntry]:
    """
    Rank raw scores

    Args:
        scores: Unranked values in provider order
        metric: Metric being ranked (xp entries also get a level)

    Returns:
        Ranked entries, best first
    """
    # sorted() is stable, so equal values keep their input order
    ordered = sorted(scores, key=lambda s: s.value, reverse=True)

    entries = []
    for position, score in enumerate(ordered, start=1):
        entries.append(LeaderboardEntry(
            rank=position,
            user_id=score.user_id,
            display_name=score.display_name or score.user_id,
            value=score.value,
            level=calculate_level(int(score.value)) if metric == LeaderboardMetric.XP else None,
            badge_tier=BADGE_TIERS.get(position),
        ))
    return entries


class MockLeaderboardProvider:
    """
    Stand-in leaderboard data until the backend serves rankings

    Values are generated from a seed per metric/timeframe, so repeated
    calls return the same board.
    """

    NAMES = [
        "Alex Johnson", "Sarah Miller", "Mike Chen", "Emma Davis", "James Wilson",
        "Lisa Anderson", "David Brown", "Anna Taylor", "Chris Martinez", "Sophie White",
        "Ryan Thompson", "Maya Patel", "Kevin Lee", "Grace Kim", "Tyler Moore",
    ]
    BASE_VALUES = {LeaderboardMetric.XP: 5000, LeaderboardMetric.STREAK: 30}

    def __init__(self, size: int = 50, extra_scores: Optional[List[RawScore]] = None):
        self.size = size
        self.extra_scores = list(extra_scores or [])

    async def fetch_scores(self, metric: str, timeframe: str) -> List[RawScore]:
        rng = random.Random(f"{metric}:{timeframe}")
        base = self.BASE_VALUES.get(LeaderboardMetric(metric), 150)

        scores = []
        for i in range(self.size):
            name = self.NAMES[i % len(self.NAMES)]
            if i >= len(self.NAMES):
                name = f"{name} {i // len(self.NAMES) + 1}"
            variation = rng.random() * 0.8 + 0.6  # 60-140% of base
            value = max(int(base * variation * max(1 - i * 0.02, 0.05)), 0)
            scores.append(RawScore(user_id=f"user_{i + 1}", value=value, display_name=name))

        return scores + self.extra_scores


class LeaderboardGateway:
    """Read-only ranking over a leaderboard data provider"""

    def __init__(self, provider, user_id: Optional[str] = None):
        self.provider = provider
        self.user_id = user_id

    async def get_leaderboard(
        self,
        metric: Union[LeaderboardMetric, str] = LeaderboardMetric.XP,
        timeframe: Union[Timeframe, str] = Timeframe.ALL,
        limit: int = LEADERBOARD_DEFAULT_LIMIT,
    ) -> LeaderboardResult:
        """
        Get a ranked leaderboard page

        Args:
            metric: 'xp' or 'streak'
            timeframe: 'all', 'daily', 'weekly' or 'monthly'
            limit: Maximum entries in data

        Returns:
            LeaderboardResult (empty on unknown metric/timeframe or provider failure)
        """
        try:
            metric = LeaderboardMetric(metric)
            timeframe = Timeframe(timeframe)
        except ValueError:
            logger.warning(f"Unknown leaderboard query metric={metric!r} timeframe={timeframe!r}")
            return LeaderboardResult(metric=str(getattr(metric, "value", metric)), timeframe=str(getattr(timeframe, "value", timeframe)))

        try:
            scores = await self.provider.fetch_scores(metric.value, timeframe.value)
        except Exception as e:
            logger.error(f"Error getting leaderboard: {e}", exc_info=True)
            return LeaderboardResult(metric=metric.value, timeframe=timeframe.value)

        ranked = rank_scores(scores, metric)

        user_rank = None
        if self.user_id is not None:
            user_rank = next((e.rank for e in ranked if e.user_id == self.user_id), None)

        return LeaderboardResult(
            metric=metric.value,
            timeframe=timeframe.value,
            data=ranked[:max(limit, 0)],
            user_rank=user_rank,
            total_users=len(scores),
        )


def format_leaderboard_display(result: LeaderboardResult) -> str:
    """Format leaderboard for display"""
    if not result.data:
        return "🏆 Leaderboard is empty right now."

    medal = {"gold": "🥇", "silver": "🥈", "bronze": "🥉"}
    unit = "XP" if result.metric == LeaderboardMetric.XP.value else "days"
    lines = [f"🏆 LEADERBOARD ({result.metric}, {result.timeframe})"]
    for entry in result.data:
        prefix = medal.get(entry.badge_tier, f"{entry.rank}.")
        lines.append(f"{prefix} {entry.display_name}: {int(entry.value)} {unit}")
    if result.user_rank:
        lines.append(f"\nYou are #{result.user_rank} of {result.total_users}")
    return "\n".join(lines)
