"""
Achievement System

One-time unlockable milestones driven by predicates over activity events.

Predicates come in two flavours:
- Immediate: a plain function of (activity_type, details)
- Deferred: a coroutine that needs the statistics provider (e.g. "complete
  50 quizzes"). Deferred predicates run under a timeout and only for the
  activity types listed in their triggers.

A predicate that raises or times out counts as "not satisfied" for that
pass and is evaluated again on the next qualifying event.

Streak milestones (3/7/14/30/100 days) are a second source of achievements
sharing the same unlocked set.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union
import logging

from learnquest.config import PREDICATE_TIMEOUT_SECONDS
from learnquest.exceptions import ConfigurationError
from learnquest.models.gamification import AchievementInstance, UserStats
from learnquest.monitoring import track_predicate_failure
from learnquest.utils.datetime_helpers import ensure_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Immediate:
    """Predicate evaluated synchronously from the event alone"""
    fn: Callable[[str, Mapping[str, Any]], bool]


@dataclass(frozen=True)
class Deferred:
    """Predicate that suspends on the statistics provider"""
    fn: Callable[[Any], Awaitable[bool]]
    # Activity types that warrant a lookup; empty means every event
    triggers: FrozenSet[str] = frozenset()

    def qualifies(self, activity_type: str) -> bool:
        return not self.triggers or activity_type in self.triggers


Predicate = Union[Immediate, Deferred]


@dataclass(frozen=True)
class AchievementDefinition:
    """Catalog entry"""
    id: str
    name: str
    description: str
    icon: str
    predicate: Predicate
    xp_reward: int = 0


@dataclass(frozen=True)
class StreakMilestone:
    """Streak-length achievement"""
    threshold: int
    name: str
    icon: str

    @property
    def id(self) -> str:
        return f"streak_{self.threshold}"

    @property
    def xp_reward(self) -> int:
        return self.threshold * 10

    @property
    def description(self) -> str:
        return f"Maintain a {self.threshold}-day learning streak"


# ============================================
# Deferred predicate helpers
# ============================================

async def _has_completed_quizzes(statistics, required: int) -> bool:
    stats: UserStats = await statistics.get_user_stats()
    return stats.total_quizzes >= required


async def _has_explored_categories(statistics, required: int) -> bool:
    stats: UserStats = await statistics.get_user_stats()
    return len(set(stats.categories_attempted)) >= required


async def _has_joined_classes(statistics, required: int) -> bool:
    stats: UserStats = await statistics.get_user_stats()
    return stats.classes_joined >= required


def _time_spent_under(details: Mapping[str, Any], seconds: float) -> bool:
    time_spent = details.get("time_spent")
    return time_spent is not None and time_spent < seconds


QUIZ_EVENTS = frozenset({"quiz_completed", "quiz_perfect"})


# ============================================
# Achievement Catalog
# ============================================

ACHIEVEMENT_CATALOG: List[AchievementDefinition] = [
    AchievementDefinition(
        id="first_quiz",
        name="First Steps",
        description="Complete your first quiz",
        icon="🎯",
        predicate=Immediate(lambda activity, details: activity == "quiz_completed"),
        xp_reward=100,
    ),
    AchievementDefinition(
        id="perfect_score",
        name="Perfectionist",
        description="Score 100% on a quiz",
        icon="🌟",
        predicate=Immediate(lambda activity, details: activity == "quiz_perfect"),
        xp_reward=150,
    ),
    AchievementDefinition(
        id="streak_week",
        name="Week Warrior",
        description="Maintain a 7-day learning streak",
        icon="🔥",
        predicate=Immediate(
            lambda activity, details: activity == "streak_bonus" and details.get("streak", 0) >= 7
        ),
        xp_reward=200,
    ),
    AchievementDefinition(
        id="quiz_master",
        name="Quiz Master",
        description="Complete 50 quizzes",
        icon="👑",
        predicate=Deferred(lambda stats: _has_completed_quizzes(stats, 50), triggers=QUIZ_EVENTS),
        xp_reward=300,
    ),
    AchievementDefinition(
        id="speed_demon",
        name="Speed Demon",
        description="Complete a quiz in under 2 minutes",
        icon="⚡",
        predicate=Immediate(
            lambda activity, details: activity == "quiz_completed" and _time_spent_under(details, 120)
        ),
        xp_reward=125,
    ),
    AchievementDefinition(
        id="knowledge_explorer",
        name="Knowledge Explorer",
        description="Take quizzes in 5 different categories",
        icon="🗺️",
        predicate=Deferred(lambda stats: _has_explored_categories(stats, 5), triggers=QUIZ_EVENTS),
        xp_reward=250,
    ),
    AchievementDefinition(
        id="social_butterfly",
        name="Social Butterfly",
        description="Join 3 different classes",
        icon="🦋",
        predicate=Deferred(lambda stats: _has_joined_classes(stats, 3), triggers=frozenset({"class_joined"})),
        xp_reward=180,
    ),
    AchievementDefinition(
        id="creator",
        name="Quiz Creator",
        description="Create your first quiz",
        icon="🎨",
        predicate=Immediate(lambda activity, details: activity == "quiz_created"),
        xp_reward=200,
    ),
]

STREAK_MILESTONES: List[StreakMilestone] = [
    StreakMilestone(3, "Getting Warmed Up", "🔥"),
    StreakMilestone(7, "Week Warrior", "⚡"),
    StreakMilestone(14, "Two Week Champion", "🏆"),
    StreakMilestone(30, "Monthly Master", "👑"),
    StreakMilestone(100, "Century Streaker", "💯"),
]


class _PassStatistics:
    """Statistics provider wrapper that performs at most one lookup per evaluation pass"""

    def __init__(self, provider):
        self._provider = provider
        self._task: Optional[asyncio.Future] = None

    async def get_user_stats(self) -> UserStats:
        if self._task is None:
            self._task = asyncio.ensure_future(self._provider.get_user_stats())
        return await asyncio.shield(self._task)

    def discard(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        elif self._task is not None and not self._task.cancelled():
            # Retrieve so a failed lookup is not reported as never retrieved
            self._task.exception()


class AchievementEngine:
    """
    Evaluates achievement predicates and owns the unlocked set

    The unlocked set is keyed by achievement id. Inserting an id that is
    already present is refused, which makes every unlock one-shot.
    """

    def __init__(
        self,
        catalog: Optional[Iterable[AchievementDefinition]] = None,
        milestones: Optional[Iterable[StreakMilestone]] = None,
        statistics=None,
        predicate_timeout: float = PREDICATE_TIMEOUT_SECONDS,
    ):
        self.catalog: List[AchievementDefinition] = list(ACHIEVEMENT_CATALOG if catalog is None else catalog)
        self.milestones: List[StreakMilestone] = sorted(
            STREAK_MILESTONES if milestones is None else milestones,
            key=lambda m: m.threshold,
        )
        self.statistics = statistics
        self.predicate_timeout = predicate_timeout
        self._unlocked: Dict[str, AchievementInstance] = {}

        catalog_ids = [d.id for d in self.catalog]
        milestone_ids = [m.id for m in self.milestones]
        duplicated = {i for i in catalog_ids if catalog_ids.count(i) > 1}
        colliding = set(catalog_ids) & set(milestone_ids)
        if duplicated or colliding:
            raise ConfigurationError(
                f"Achievement ids must be unique across catalog and streak milestones: "
                f"{sorted(duplicated | colliding)}",
                config_key="ACHIEVEMENT_CATALOG",
            )

    # ---------- unlocked set ----------

    def is_unlocked(self, achievement_id: str) -> bool:
        return achievement_id in self._unlocked

    def unlock(
        self,
        achievement_id: str,
        name: str,
        description: str,
        icon: str,
        xp_reward: int,
        now: datetime,
    ) -> Optional[AchievementInstance]:
        """
        Insert an achievement into the unlocked set

        Returns:
            The new instance, or None if it was already unlocked
        """
        if achievement_id in self._unlocked:
            return None

        instance = AchievementInstance(
            id=achievement_id,
            name=name,
            description=description,
            icon=icon,
            xp_reward=xp_reward,
            unlocked_at=now,
        )
        self._unlocked[achievement_id] = instance
        return instance

    def unlocked(self) -> List[AchievementInstance]:
        """Unlocked achievements in unlock order"""
        return list(self._unlocked.values())

    def recent(self) -> List[AchievementInstance]:
        """Unlocked achievements, most recent first"""
        # Same-instant unlocks keep reverse unlock order
        return sorted(
            reversed(self.unlocked()),
            key=lambda a: ensure_utc(a.unlocked_at),
            reverse=True,
        )

    def load(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Restore the unlocked set, including ids this catalog does not know"""
        for record in records:
            try:
                instance = AchievementInstance.model_validate(record)
            except ValueError as e:
                logger.warning(f"Skipping unreadable stored achievement {record!r}: {e}")
                continue
            self._unlocked.setdefault(instance.id, instance)

    def dump(self) -> List[Dict[str, Any]]:
        return [a.model_dump(mode="json") for a in self._unlocked.values()]

    # ---------- predicate evaluation ----------

    async def _evaluate(
        self,
        definition: AchievementDefinition,
        activity_type: str,
        details: Mapping[str, Any],
        statistics,
    ) -> bool:
        predicate = definition.predicate
        try:
            if isinstance(predicate, Immediate):
                return bool(predicate.fn(activity_type, details))

            if not predicate.qualifies(activity_type) or statistics is None:
                return False
            return bool(await asyncio.wait_for(predicate.fn(statistics), timeout=self.predicate_timeout))

        except asyncio.TimeoutError:
            logger.warning(
                f"Achievement {definition.id} lookup timed out after {self.predicate_timeout}s; "
                f"will retry on next qualifying event"
            )
            track_predicate_failure(definition.id, "timeout")
            return False
        except Exception as e:
            logger.warning(f"Error checking achievement {definition.id}: {e}", exc_info=True)
            track_predicate_failure(definition.id, "error")
            return False

    async def evaluate(self, activity_type: str, details: Mapping[str, Any]) -> List[AchievementDefinition]:
        """
        Find locked achievements whose predicates hold for this event

        Args:
            activity_type: Activity name
            details: Event details

        Returns:
            Satisfied definitions, in catalog order
        """
        statistics = _PassStatistics(self.statistics) if self.statistics is not None else None
        satisfied = []
        try:
            for definition in self.catalog:
                if definition.id in self._unlocked:
                    continue
                if await self._evaluate(definition, activity_type, details, statistics):
                    satisfied.append(definition)
        finally:
            if statistics is not None:
                statistics.discard()
        return satisfied

    def milestones_reached(self, streak_count: int) -> List[StreakMilestone]:
        """Locked streak milestones at or below the streak length"""
        return [
            m for m in self.milestones
            if streak_count >= m.threshold and m.id not in self._unlocked
        ]


def format_achievement_unlock_message(achievement: AchievementInstance) -> str:
    """
    Format achievement unlock message for celebration

    Args:
        achievement: Newly unlocked achievement

    Returns:
        Formatted celebration message
    """
    lines = [
        "🎉 ACHIEVEMENT UNLOCKED! 🎉",
        "",
        f"{achievement.icon} {achievement.name}",
        "",
        achievement.description,
    ]
    if achievement.xp_reward:
        lines += ["", f"⭐ +{achievement.xp_reward} XP Bonus!"]
    return "\n".join(lines)
