"""
Gamification Session

All engagement state for one signed-in user: XP ledger, streak, unlocked
achievements, badges, challenges, feature flags and XP boosts. The store,
statistics provider, challenge catalog, leaderboard provider, clock and
timezone are injected.

Control flow:
    award_xp / update_streak
        -> XP computed and persisted
        -> level-up rewards applied
        -> event submitted to the achievement engine, which pays bonus XP
           back through the same path

Persistence failures never surface to the caller: they are logged,
counted and reported to Sentry. A key whose stored value could not be
read is re-read before every write to it and is not written until that
read succeeds. Progress made in the meantime is merged into the stored
value.

Usage:
    session = await create_session(user_id)
    result = await session.award_xp("quiz_completed", {"difficulty": "hard"})
    streak = await session.update_streak()
    summary = await session.get_summary()
"""

import asyncio
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Set, Union

from learnquest.config import (
    LEADERBOARD_DEFAULT_LIMIT,
    PREDICATE_TIMEOUT_SECONDS,
    REDIS_URL,
    STATISTICS_API_TOKEN,
    STATISTICS_API_URL,
    STATISTICS_HTTP_TIMEOUT,
    STORAGE_BACKEND,
    STORE_KEY_PREFIX,
    validate_config,
)
from learnquest.gamification.achievement_system import (
    AchievementDefinition,
    AchievementEngine,
    StreakMilestone,
)
from learnquest.gamification.badges import BadgeRegistry
from learnquest.gamification.challenges import ChallengeTracker, MockChallengeCatalog
from learnquest.gamification.dashboards import build_summary
from learnquest.gamification.leaderboard import LeaderboardGateway, MockLeaderboardProvider
from learnquest.gamification.streak_system import STREAK_BONUS_THRESHOLD, StreakOutcome, compute_streak
from learnquest.gamification.xp_system import (
    ActivityType,
    LevelRewardKind,
    boost_from_reward,
    calculate_level,
    calculate_xp_award,
    resolve_activity,
    rewards_between,
)
from learnquest.models.gamification import (
    AchievementInstance,
    ActiveBoost,
    BadgeInstance,
    Challenge,
    ChallengeReward,
    GamificationSummary,
    LeaderboardResult,
    LevelUpEvent,
    StreakState,
    XPAwardResult,
)
from learnquest.logging_config import setup_logging
from learnquest.monitoring import (
    capture_exception,
    capture_message,
    init_sentry,
    set_user_context,
    track_achievement_unlock,
    track_challenge_completion,
    track_store_error,
    track_xp_award,
)
from learnquest.providers.statistics import HttpStatisticsProvider
from learnquest.store import (
    ACHIEVEMENTS_KEY,
    BADGES_KEY,
    BOOSTS_KEY,
    CHALLENGES_KEY,
    FEATURES_KEY,
    LAST_LEVEL_UP_KEY,
    STREAK_KEY,
    XP_KEY,
    InMemoryStore,
    RedisStore,
    store_key,
)
from learnquest.utils.datetime_helpers import calendar_day, ensure_utc, now_utc, resolve_timezone

logger = logging.getLogger(__name__)

_bootstrapped = False


@dataclass
class _AwardTally:
    """What one top-level award produced, cascade included"""
    rewards: List[str] = field(default_factory=list)
    achievements: List[AchievementInstance] = field(default_factory=list)


class GamificationSession:
    """Engagement state and operations for one user"""

    def __init__(
        self,
        user_id: str,
        store,
        statistics=None,
        challenge_catalog=None,
        leaderboard_provider=None,
        clock: Callable[[], datetime] = now_utc,
        timezone: Optional[str] = None,
        predicate_timeout: float = PREDICATE_TIMEOUT_SECONDS,
        key_prefix: str = STORE_KEY_PREFIX,
        achievement_catalog: Optional[Iterable[AchievementDefinition]] = None,
        streak_milestones: Optional[Iterable[StreakMilestone]] = None,
    ):
        self.user_id = user_id
        self.store = store
        self.statistics = statistics
        self.challenge_catalog = challenge_catalog or MockChallengeCatalog(clock)
        self.leaderboard = LeaderboardGateway(leaderboard_provider or MockLeaderboardProvider(), user_id)
        self.timezone = resolve_timezone(timezone)
        self.key_prefix = key_prefix
        self._clock = clock

        self.total_xp = 0
        self.streak = StreakState()
        self.achievements = AchievementEngine(
            catalog=achievement_catalog,
            milestones=streak_milestones,
            statistics=statistics,
            predicate_timeout=predicate_timeout,
        )
        self.badges = BadgeRegistry()
        self.challenges = ChallengeTracker()
        self.unlocked_features: Set[str] = set()
        self.boosts: Dict[str, ActiveBoost] = {}
        self.last_level_up: Optional[LevelUpEvent] = None

        self._initialized = False
        # Keys whose last read failed; never written until a retry succeeds
        self._unreadable: Set[str] = set()
        self._restore_lock: Optional[asyncio.Lock] = None

    # ============================================
    # Persistence
    # ============================================

    def _key(self, name: str) -> str:
        return store_key(self.key_prefix, self.user_id, name)

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def _lock(self) -> asyncio.Lock:
        if self._restore_lock is None:
            self._restore_lock = asyncio.Lock()
        return self._restore_lock

    async def _load_json(self, name: str, default: Any) -> Any:
        """
        Read and decode one stored value

        Returns default if the key is absent or unreadable. A failed read
        marks the key as unreadable until a later read succeeds.
        """
        try:
            raw = await self.store.get(self._key(name))
        except Exception as e:
            logger.error(f"Failed to load {name} for user {self.user_id}: {e}", exc_info=True)
            track_store_error(f"get:{name}")
            capture_exception(e, user_id=self.user_id, operation=f"load_{name}")
            self._unreadable.add(name)
            return default

        self._unreadable.discard(name)
        if raw is None:
            return default

        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable stored {name} for user {self.user_id}: {e}")
            return default

    async def _load_list(self, name: str) -> List[Any]:
        value = await self._load_json(name, [])
        if not isinstance(value, list):
            logger.warning(f"Ignoring stored {name} for user {self.user_id}: expected a list")
            return []
        return value

    # Each restorer merges the stored value into the in-memory state, so a
    # retried read keeps progress made while the key was unreadable.

    async def _restore_xp(self) -> None:
        xp = await self._load_json(XP_KEY, 0)
        if isinstance(xp, (int, float)) and not isinstance(xp, bool) and math.isfinite(xp):
            self.total_xp += max(int(xp), 0)

    async def _restore_streak(self) -> None:
        stored = self._parse_streak(await self._load_json(STREAK_KEY, None))
        current = self.streak
        newer = stored
        if current.last_activity_date is not None and (
            stored.last_activity_date is None or current.last_activity_date >= stored.last_activity_date
        ):
            newer = current
        self.streak = newer.model_copy(update={"best": max(stored.best, current.best, newer.count)})

    async def _restore_achievements(self) -> None:
        self.achievements.load(await self._load_list(ACHIEVEMENTS_KEY))

    async def _restore_badges(self) -> None:
        self.badges.load(await self._load_list(BADGES_KEY))

    async def _restore_challenges(self) -> None:
        self.challenges.load(await self._load_list(CHALLENGES_KEY))

    async def _restore_features(self) -> None:
        self.unlocked_features |= {str(f) for f in await self._load_list(FEATURES_KEY)}

    async def _restore_boosts(self) -> None:
        for record in await self._load_list(BOOSTS_KEY):
            try:
                boost = ActiveBoost.model_validate(record)
            except ValueError as e:
                logger.warning(f"Skipping unreadable stored boost {record!r}: {e}")
                continue
            self.boosts.setdefault(boost.id, boost)

    async def _restore_last_level_up(self) -> None:
        last_level_up = await self._load_json(LAST_LEVEL_UP_KEY, None)
        if not last_level_up or self.last_level_up is not None:
            return
        try:
            self.last_level_up = LevelUpEvent.model_validate(last_level_up)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable last level-up for user {self.user_id}: {e}")

    def _restorers(self) -> Dict[str, Callable[[], Awaitable[None]]]:
        return {
            XP_KEY: self._restore_xp,
            STREAK_KEY: self._restore_streak,
            ACHIEVEMENTS_KEY: self._restore_achievements,
            BADGES_KEY: self._restore_badges,
            CHALLENGES_KEY: self._restore_challenges,
            FEATURES_KEY: self._restore_features,
            BOOSTS_KEY: self._restore_boosts,
            LAST_LEVEL_UP_KEY: self._restore_last_level_up,
        }

    def _snapshot(self, name: str) -> Any:
        """JSON-ready value of one piece of state"""
        if name == XP_KEY:
            return self.total_xp
        if name == STREAK_KEY:
            return self.streak.model_dump(mode="json")
        if name == ACHIEVEMENTS_KEY:
            return self.achievements.dump()
        if name == BADGES_KEY:
            return self.badges.dump()
        if name == CHALLENGES_KEY:
            return self.challenges.dump()
        if name == FEATURES_KEY:
            return sorted(self.unlocked_features)
        if name == BOOSTS_KEY:
            return [b.model_dump(mode="json") for b in self.boosts.values()]
        if name == LAST_LEVEL_UP_KEY:
            return self.last_level_up.model_dump(mode="json") if self.last_level_up else None
        raise KeyError(name)

    async def _retry_unreadable(self, names: Iterable[str]) -> None:
        async with self._lock():
            for name, restore in self._restorers().items():
                if name in names and name in self._unreadable:
                    await restore()

    async def _save(self, name: str) -> bool:
        """Persist one piece of state; failures are reported, never raised"""
        # A key is never written before its stored value has been read
        if name in self._unreadable:
            await self._retry_unreadable({name})
            if name in self._unreadable:
                logger.error(f"Not persisting {name} for user {self.user_id}: stored value is still unreadable")
                track_store_error(f"set:{name}")
                return False

        error: Optional[Exception] = None
        try:
            saved = await self.store.set(self._key(name), json.dumps(self._snapshot(name)))
        except Exception as e:
            saved = False
            error = e

        if saved:
            return True

        logger.error(f"Failed to persist {name} for user {self.user_id}: {error or 'store refused write'}")
        track_store_error(f"set:{name}")
        if error is not None:
            capture_exception(error, user_id=self.user_id, operation=f"save_{name}")
        else:
            capture_message(f"Store refused write of {name}", level="error", user_id=self.user_id)
        return False

    async def initialize(self) -> None:
        """Restore persisted state (missing keys keep zero-state defaults)"""
        async with self._lock():
            if self._initialized:
                return
            set_user_context(self.user_id)

            for restore in self._restorers().values():
                await restore()

            self._initialized = True

        if self._unreadable:
            logger.warning(
                f"Stored state for user {self.user_id} could not be read ({sorted(self._unreadable)}); "
                f"will retry before writing"
            )
        logger.info(
            f"Session ready for user {self.user_id}: {self.total_xp} XP, "
            f"streak {self.streak.count}, {len(self.achievements.unlocked())} achievements"
        )

    @staticmethod
    def _parse_streak(raw: Any) -> StreakState:
        if raw is None:
            return StreakState()
        # Older records stored the bare count
        if isinstance(raw, int) and not isinstance(raw, bool):
            count = max(raw, 0)
            return StreakState(count=count, best=count)
        try:
            state = StreakState.model_validate(raw)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable stored streak {raw!r}: {e}")
            return StreakState()
        if state.best < state.count:
            state = state.model_copy(update={"best": state.count})
        return state

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()
        elif self._unreadable:
            await self._retry_unreadable(set(self._unreadable))

    async def close(self) -> None:
        """Release provider and store connections"""
        for resource in (self.statistics, self.store):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()

    # ============================================
    # XP & Levels
    # ============================================

    def _active_boosts(self, now: datetime) -> List[ActiveBoost]:
        return [b for b in self.boosts.values() if b.is_active(now)]

    async def award_xp(
        self,
        activity_type: Union[ActivityType, str],
        details: Optional[Mapping[str, Any]] = None,
    ) -> XPAwardResult:
        """
        Award XP for an activity

        Args:
            activity_type: ActivityType or its string value
            details: Event details (difficulty, streak, xp, time_spent, ...)

        Returns:
            XPAwardResult. total_xp and new_level include any achievement
            bonus XP the award triggered; xp_awarded is this activity alone.
        """
        await self._ensure_initialized()

        previous_level = calculate_level(self.total_xp)
        activity = resolve_activity(activity_type)
        if activity is None:
            logger.warning(f"Unknown activity type '{activity_type}' for user {self.user_id}; no XP awarded")
            return XPAwardResult(
                xp_awarded=0,
                total_xp=self.total_xp,
                new_level=previous_level,
                previous_level=previous_level,
            )

        tally = _AwardTally()
        xp_awarded = await self._award(activity, dict(details or {}), tally)
        new_level = calculate_level(self.total_xp)

        return XPAwardResult(
            xp_awarded=xp_awarded,
            total_xp=self.total_xp,
            new_level=new_level,
            level_up=new_level > previous_level,
            previous_level=previous_level,
            rewards=tally.rewards,
            achievements_unlocked=[a.id for a in tally.achievements],
        )

    async def _award(self, activity: ActivityType, details: Dict[str, Any], tally: _AwardTally) -> int:
        now = self._now()
        amount = calculate_xp_award(activity, details, self._active_boosts(now))

        before = calculate_level(self.total_xp)
        self.total_xp += amount
        await self._save(XP_KEY)
        after = calculate_level(self.total_xp)

        track_xp_award(activity.value, amount, level_up=after > before)
        logger.info(f"Awarded {amount} XP to user {self.user_id} for {activity.value} (total {self.total_xp})")

        if after > before:
            tally.rewards.extend(await self._apply_level_up(before, after, now))

        await self._unlock_satisfied(activity.value, details, tally)
        return amount

    async def _apply_level_up(self, before: int, after: int, now: datetime) -> List[str]:
        """Apply every level reward in (before, after]; returns ids newly granted"""
        granted = []
        badges_changed = features_changed = boosts_changed = False

        for reward in rewards_between(before, after):
            if reward.kind == LevelRewardKind.BADGE:
                _, created = self.badges.award(
                    {"id": reward.id, "name": reward.name, "description": f"Reached level {reward.level}"},
                    now,
                )
                if created:
                    badges_changed = True
                    granted.append(reward.id)

            elif reward.kind == LevelRewardKind.FEATURE:
                if reward.id not in self.unlocked_features:
                    self.unlocked_features.add(reward.id)
                    features_changed = True
                    granted.append(reward.id)

            elif reward.kind == LevelRewardKind.BOOST:
                # A boost is granted once, even if the level is reached again after reset_xp
                if reward.id not in self.boosts:
                    self.boosts[reward.id] = boost_from_reward(reward, now)
                    boosts_changed = True
                    granted.append(reward.id)

        if badges_changed:
            await self._save(BADGES_KEY)
        if features_changed:
            await self._save(FEATURES_KEY)
        if boosts_changed:
            await self._save(BOOSTS_KEY)

        self.last_level_up = LevelUpEvent(level=after, previous_level=before, timestamp=now, rewards=granted)
        await self._save(LAST_LEVEL_UP_KEY)

        logger.info(f"User {self.user_id} leveled up: {before} -> {after} (rewards: {granted})")
        return granted

    async def reset_xp(self) -> None:
        """Administrative reset of the XP ledger to zero"""
        await self._ensure_initialized()
        logger.warning(f"Resetting XP for user {self.user_id} (was {self.total_xp})")
        self.total_xp = 0
        # The reset replaces whatever total is stored, read or not
        self._unreadable.discard(XP_KEY)
        await self._save(XP_KEY)

    # ============================================
    # Streaks
    # ============================================

    async def update_streak(self, activity_timestamp: Union[datetime, date, None] = None) -> int:
        """
        Record learning activity for the streak

        Args:
            activity_timestamp: When the activity happened (default: now).
                Naive datetimes are read in the session timezone.

        Returns:
            Current streak length
        """
        await self._ensure_initialized()

        moment = activity_timestamp if activity_timestamp is not None else self._clock()
        day = calendar_day(moment, self.timezone)

        state, outcome = compute_streak(self.streak, day)
        if outcome in (StreakOutcome.SAME_DAY, StreakOutcome.BACKDATED):
            return self.streak.count

        self.streak = state
        await self._save(STREAK_KEY)
        logger.info(f"Streak for user {self.user_id} {outcome.value}: {state.count} day(s)")

        await self.check_streak_achievements(state.count)

        if state.count >= STREAK_BONUS_THRESHOLD:
            await self.award_xp(ActivityType.STREAK_BONUS, {"streak": state.count})

        return state.count

    # ============================================
    # Achievements
    # ============================================

    async def _unlock(
        self,
        achievement_id: str,
        name: str,
        description: str,
        icon: str,
        xp_reward: int,
        tally: _AwardTally,
    ) -> Optional[AchievementInstance]:
        instance = self.achievements.unlock(achievement_id, name, description, icon, xp_reward, self._now())
        if instance is None:
            return None

        await self._save(ACHIEVEMENTS_KEY)
        track_achievement_unlock(achievement_id)
        logger.info(f"User {self.user_id} unlocked achievement {achievement_id}")
        tally.achievements.append(instance)

        if xp_reward > 0:
            await self._award(
                ActivityType.ACHIEVEMENT_UNLOCKED,
                {"xp": xp_reward, "achievement_id": achievement_id},
                tally,
            )
        return instance

    async def _unlock_satisfied(
        self,
        activity_type: str,
        details: Mapping[str, Any],
        tally: _AwardTally,
    ) -> List[AchievementInstance]:
        unlocked = []
        for definition in await self.achievements.evaluate(activity_type, details):
            instance = await self._unlock(
                definition.id,
                definition.name,
                definition.description,
                definition.icon,
                definition.xp_reward,
                tally,
            )
            if instance is not None:
                unlocked.append(instance)
        return unlocked

    async def check_achievements(
        self,
        activity_type: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> List[AchievementInstance]:
        """
        Unlock catalog achievements satisfied by an activity

        Returns:
            Achievements unlocked by this call (bonus XP included in the ledger)
        """
        await self._ensure_initialized()
        unlocked = await self._unlock_satisfied(str(activity_type), dict(details or {}), _AwardTally())
        return [a.model_copy(deep=True) for a in unlocked]

    async def check_streak_achievements(self, streak_count: int) -> List[AchievementInstance]:
        """Unlock every streak milestone at or below streak_count"""
        await self._ensure_initialized()
        unlocked = []
        for milestone in self.achievements.milestones_reached(streak_count):
            instance = await self._unlock(
                milestone.id,
                milestone.name,
                milestone.description,
                milestone.icon,
                milestone.xp_reward,
                _AwardTally(),
            )
            if instance is not None:
                unlocked.append(instance.model_copy(deep=True))
        return unlocked

    async def list_achievements(self) -> List[AchievementInstance]:
        """Unlocked achievements, most recent first"""
        await self._ensure_initialized()
        return [a.model_copy(deep=True) for a in self.achievements.recent()]

    # ============================================
    # Badges
    # ============================================

    async def award_badge(self, badge: Union[BadgeInstance, Mapping[str, Any]]) -> BadgeInstance:
        """Award a badge; re-awarding an id returns the original award"""
        await self._ensure_initialized()
        instance, created = self.badges.award(badge, self._now())
        if created:
            await self._save(BADGES_KEY)
            logger.info(f"User {self.user_id} earned badge {instance.id}")
        return instance.model_copy(deep=True)

    async def list_badges(self) -> List[BadgeInstance]:
        await self._ensure_initialized()
        return [b.model_copy(deep=True) for b in self.badges.list()]

    async def has_badge(self, badge_id: str) -> bool:
        await self._ensure_initialized()
        return self.badges.has(badge_id)

    # ============================================
    # Challenges
    # ============================================

    async def advance_challenge(self, challenge_id: str, increment: int = 1) -> Optional[Challenge]:
        """
        Add progress to a challenge

        The reward is issued exactly once, by the call that reaches target.

        Args:
            challenge_id: Challenge to advance
            increment: Progress to add (negative values add nothing)

        Returns:
            Challenge snapshot, or None for an unknown id
        """
        await self._ensure_initialized()

        challenge, changed, completed_now = self.challenges.advance(challenge_id, increment, self._now())
        if challenge is None:
            logger.warning(f"Unknown challenge '{challenge_id}' for user {self.user_id}")
            return None

        if changed:
            await self._save(CHALLENGES_KEY)

        if completed_now:
            track_challenge_completion(challenge_id)
            logger.info(f"User {self.user_id} completed challenge {challenge_id}")

            reward = challenge.reward
            if reward.xp and reward.xp > 0:
                await self.award_xp(
                    ActivityType.CHALLENGE_COMPLETED,
                    {"xp": reward.xp, "challenge_id": challenge_id},
                )
            if reward.badge_id:
                await self.award_badge({
                    "id": reward.badge_id,
                    "name": reward.badge_id.replace("_", " ").title(),
                    "description": f"Completed {challenge.title}",
                    "icon": challenge.icon,
                })

        return challenge.model_copy(deep=True)

    async def load_active_challenges(self) -> List[Challenge]:
        """
        Refresh challenges from the catalog provider

        Returns:
            Every tracked challenge after the merge (unchanged on provider failure)
        """
        await self._ensure_initialized()

        try:
            definitions = await self.challenge_catalog.fetch_active_challenges()
        except Exception as e:
            logger.error(f"Error loading challenges for user {self.user_id}: {e}", exc_info=True)
        else:
            self.challenges.merge(definitions)
            await self._save(CHALLENGES_KEY)

        return [c.model_copy(deep=True) for c in self.challenges.all()]

    async def create_challenge(
        self,
        title: str,
        description: str,
        target: int,
        challenge_type: str = "custom",
        reward: Union[ChallengeReward, Mapping[str, Any], None] = None,
        end_date: Optional[datetime] = None,
        icon: str = "🎯",
    ) -> Challenge:
        """
        Create a user-defined challenge

        Raises:
            ValidationError: If target is not positive
        """
        await self._ensure_initialized()

        if reward is not None and not isinstance(reward, ChallengeReward):
            reward = ChallengeReward.model_validate(reward)

        challenge = self.challenges.create(
            title=title,
            description=description,
            target=target,
            challenge_type=challenge_type,
            reward=reward,
            end_date=end_date,
            icon=icon,
        )
        await self._save(CHALLENGES_KEY)
        logger.info(f"User {self.user_id} created challenge {challenge.id}")
        return challenge.model_copy(deep=True)

    # ============================================
    # Read-only views
    # ============================================

    async def get_summary(self) -> GamificationSummary:
        await self._ensure_initialized()
        return build_summary(
            total_xp=self.total_xp,
            streak=self.streak,
            achievements=self.achievements,
            badges=self.badges,
            challenges=self.challenges,
            unlocked_features=self.unlocked_features,
            now=self._now(),
        )

    async def get_leaderboard(
        self,
        metric: str = "xp",
        timeframe: str = "all",
        limit: int = LEADERBOARD_DEFAULT_LIMIT,
    ) -> LeaderboardResult:
        return await self.leaderboard.get_leaderboard(metric, timeframe, limit)


def _bootstrap() -> None:
    """Process-wide logging and Sentry setup, run by the first create_session"""
    global _bootstrapped
    if _bootstrapped:
        return
    # basicConfig leaves an embedding app's own handlers in place
    setup_logging()
    init_sentry()
    _bootstrapped = True


async def create_session(user_id: str, **overrides: Any) -> GamificationSession:
    """
    Build and initialize a session from configuration

    Args:
        user_id: Signed-in user
        **overrides: GamificationSession keyword arguments that replace
            the configured defaults (store, statistics, clock, ...)

    Returns:
        Initialized GamificationSession
    """
    validate_config()
    _bootstrap()

    if "store" not in overrides:
        if STORAGE_BACKEND == "redis":
            store = RedisStore(REDIS_URL)
            await store.connect()
        else:
            store = InMemoryStore()
        overrides["store"] = store

    if "statistics" not in overrides and STATISTICS_API_URL:
        overrides["statistics"] = HttpStatisticsProvider(
            STATISTICS_API_URL,
            token=STATISTICS_API_TOKEN,
            timeout=STATISTICS_HTTP_TIMEOUT,
        )

    session = GamificationSession(user_id, **overrides)
    await session.initialize()
    return session
