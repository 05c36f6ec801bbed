"""
XP and Leveling System

XP rules, level calculation and level-up rewards.

Leveling Curve:
    level = floor(sqrt(total_xp / 100)) + 1

    Level 1 starts at 0 XP, level 2 at 100, level 3 at 400, level 4 at 900:
    the boundary for level L is (L - 1)^2 * 100.

XP Award Rules (base, before multipliers):
- Quiz completed: 50 (x1.0 / x1.2 / x1.5 by difficulty)
- Perfect quiz: 100 (x1.0 / x1.5 / x2.0 by difficulty)
- First attempt correct: 10
- Streak bonus: 20 (x min(streak * 0.1, 2))
- Daily login: 25
- Quiz created: 75
- Class joined: 30
- Challenge completed: 150 (or the challenge's own reward)
- Achievement unlocked: 200 (or the achievement's own reward)
- Leaderboard climb: 40
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union
import logging

from learnquest.models.gamification import ActiveBoost, LevelProgress

logger = logging.getLogger(__name__)

XP_PER_LEVEL_UNIT = 100


class ActivityType(str, Enum):
    """Activities that earn XP"""
    QUIZ_COMPLETED = "quiz_completed"
    QUIZ_PERFECT = "quiz_perfect"
    FIRST_ATTEMPT_CORRECT = "first_attempt_correct"
    STREAK_BONUS = "streak_bonus"
    DAILY_LOGIN = "daily_login"
    QUIZ_CREATED = "quiz_created"
    CLASS_JOINED = "class_joined"
    CHALLENGE_COMPLETED = "challenge_completed"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    LEADERBOARD_CLIMB = "leaderboard_climb"


# A multiplier is either a lookup table keyed by the detail value
# (e.g. difficulty -> factor) or a function of the detail value.
Multiplier = Union[Mapping[str, float], Callable[[Any], float]]


@dataclass(frozen=True)
class XPRule:
    """How much XP one activity is worth"""
    base: int
    multipliers: Mapping[str, Multiplier] = field(default_factory=dict)
    # Reward-style activities carry their own amount in details['xp']
    accepts_amount: bool = False


XP_RULES: Dict[ActivityType, XPRule] = {
    ActivityType.QUIZ_COMPLETED: XPRule(
        base=50,
        multipliers={"difficulty": {"easy": 1.0, "medium": 1.2, "hard": 1.5}},
    ),
    ActivityType.QUIZ_PERFECT: XPRule(
        base=100,
        multipliers={"difficulty": {"easy": 1.0, "medium": 1.5, "hard": 2.0}},
    ),
    ActivityType.FIRST_ATTEMPT_CORRECT: XPRule(base=10),
    ActivityType.STREAK_BONUS: XPRule(
        base=20,
        multipliers={"streak": lambda streak: min(streak * 0.1, 2)},
    ),
    ActivityType.DAILY_LOGIN: XPRule(base=25),
    ActivityType.QUIZ_CREATED: XPRule(base=75),
    ActivityType.CLASS_JOINED: XPRule(base=30),
    ActivityType.CHALLENGE_COMPLETED: XPRule(base=150, accepts_amount=True),
    ActivityType.ACHIEVEMENT_UNLOCKED: XPRule(base=200, accepts_amount=True),
    ActivityType.LEADERBOARD_CLIMB: XPRule(base=40),
}


class LevelRewardKind(str, Enum):
    """What a level-up reward grants"""
    BADGE = "badge"
    FEATURE = "feature"
    BOOST = "boost"


@dataclass(frozen=True)
class LevelReward:
    """Reward granted once when a level is first reached"""
    level: int
    kind: LevelRewardKind
    id: str
    name: str
    multiplier: float = 1.0
    duration_days: int = 0


LEVEL_REWARDS: Dict[int, LevelReward] = {
    5: LevelReward(5, LevelRewardKind.BADGE, "novice_learner", "Novice Learner"),
    10: LevelReward(10, LevelRewardKind.BADGE, "dedicated_student", "Dedicated Student"),
    15: LevelReward(15, LevelRewardKind.FEATURE, "custom_avatar", "Custom Avatar"),
    20: LevelReward(20, LevelRewardKind.BADGE, "knowledge_seeker", "Knowledge Seeker"),
    25: LevelReward(
        25, LevelRewardKind.BOOST, "bonus_xp_week", "2x XP Week",
        multiplier=2.0, duration_days=7,
    ),
    30: LevelReward(30, LevelRewardKind.BADGE, "master_learner", "Master Learner"),
}


def calculate_level(total_xp: int) -> int:
    """
    Level for a cumulative XP total

    Integer square root keeps boundaries exact: level(L_boundary) == L and
    level(L_boundary - 1) == L - 1 for every level.
    """
    if total_xp <= 0:
        return 1
    return math.isqrt(int(total_xp) // XP_PER_LEVEL_UNIT) + 1


def level_boundary(level: int) -> int:
    """Total XP at which a level starts"""
    if level <= 1:
        return 0
    return (level - 1) ** 2 * XP_PER_LEVEL_UNIT


def get_xp_for_next_level(total_xp: int) -> LevelProgress:
    """
    Progress through the current level

    Returns:
        LevelProgress(
            current=XP earned since the level started,
            needed=XP still missing for the next level,
            total=XP span of the current level,
            progress=current / total
        )
    """
    total_xp = max(int(total_xp), 0)
    level = calculate_level(total_xp)
    lower = level_boundary(level)
    upper = level_boundary(level + 1)
    span = upper - lower

    return LevelProgress(
        current=total_xp - lower,
        needed=upper - total_xp,
        total=span,
        progress=(total_xp - lower) / span,
    )


def resolve_activity(activity_type: Union[ActivityType, str]) -> Optional[ActivityType]:
    """Map a caller-supplied activity name onto the closed set, None if unknown"""
    if isinstance(activity_type, ActivityType):
        return activity_type
    try:
        return ActivityType(activity_type)
    except ValueError:
        return None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero"""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def _apply_multiplier(key: str, multiplier: Multiplier, detail: Any) -> float:
    if callable(multiplier):
        try:
            factor = float(multiplier(detail))
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring unusable {key} detail {detail!r}: {e}")
            return 1.0
        return factor if math.isfinite(factor) else 1.0
    if isinstance(detail, str) and detail in multiplier:
        return float(multiplier[detail])
    return 1.0


def _explicit_amount(rule: XPRule, details: Mapping[str, Any]) -> float:
    value = details.get("xp")
    if not value:
        return rule.base
    try:
        amount = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unusable xp detail {value!r}; using base {rule.base}")
        return rule.base
    return amount if math.isfinite(amount) else rule.base


def calculate_xp_award(
    activity: ActivityType,
    details: Mapping[str, Any],
    boosts: Iterable[ActiveBoost] = (),
) -> int:
    """
    Calculate XP for one activity

    Args:
        activity: Activity kind
        details: Event details (difficulty, streak, xp, ...)
        boosts: Currently active time-boxed boosts

    Returns:
        Whole XP amount (never negative)
    """
    rule = XP_RULES[activity]

    amount: float = _explicit_amount(rule, details) if rule.accepts_amount else rule.base

    for key, multiplier in rule.multipliers.items():
        detail = details.get(key)
        if detail:
            amount *= _apply_multiplier(key, multiplier, detail)

    for boost in boosts:
        amount *= boost.multiplier

    return max(round_half_up(amount), 0)


def rewards_between(previous_level: int, new_level: int) -> List[LevelReward]:
    """Level rewards for every level crossed in (previous_level, new_level]"""
    return [
        LEVEL_REWARDS[level]
        for level in range(previous_level + 1, new_level + 1)
        if level in LEVEL_REWARDS
    ]


def boost_from_reward(reward: LevelReward, now: datetime) -> ActiveBoost:
    """Materialize a BOOST level reward starting now"""
    return ActiveBoost(
        id=reward.id,
        name=reward.name,
        multiplier=reward.multiplier,
        unlocked_at=now,
        expires_at=now + timedelta(days=reward.duration_days),
    )


def format_level_display(total_xp: int) -> str:
    """
    Format level progress for display

    Returns:
        e.g. "⭐ Level 3 (450 XP) ▓▓░░░░░░░░ 50/500 to level 4"
    """
    level = calculate_level(total_xp)
    info = get_xp_for_next_level(total_xp)
    filled = int(info.progress * 10)
    bar = "▓" * filled + "░" * (10 - filled)
    return (
        f"⭐ Level {level} ({total_xp} XP) {bar} "
        f"{info.current}/{info.total} to level {level + 1}"
    )
