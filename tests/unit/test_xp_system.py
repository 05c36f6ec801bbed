"""Unit tests for XP System (learnquest/gamification/xp_system.py)"""
import pytest
from datetime import datetime, timedelta, timezone

from learnquest.gamification.xp_system import (
    ActivityType,
    LEVEL_REWARDS,
    LevelRewardKind,
    boost_from_reward,
    calculate_level,
    calculate_xp_award,
    format_level_display,
    get_xp_for_next_level,
    level_boundary,
    resolve_activity,
    rewards_between,
    round_half_up,
)
from learnquest.models.gamification import ActiveBoost


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Level Calculation Tests
# ============================================================================

@pytest.mark.parametrize("total_xp,expected_level", [
    (0, 1),
    (99, 1),
    (100, 2),
    (399, 2),
    (400, 3),
    (899, 3),
    (900, 4),
    (10000, 11),
])
def test_calculate_level(total_xp, expected_level):
    """Test level boundaries of the square-root curve"""
    assert calculate_level(total_xp) == expected_level


def test_calculate_level_negative_is_level_one():
    assert calculate_level(-500) == 1


def test_level_boundaries_are_exact():
    """Test boundary XP lands on the new level and one less stays below"""
    for level in range(2, 200):
        boundary = level_boundary(level)
        assert boundary == (level - 1) ** 2 * 100
        assert calculate_level(boundary) == level
        assert calculate_level(boundary - 1) == level - 1


def test_calculate_level_is_monotonic():
    previous = calculate_level(0)
    for xp in range(0, 50000, 37):
        level = calculate_level(xp)
        assert level >= previous
        previous = level


def test_get_xp_for_next_level_mid_level():
    """Test progress inside level 2 (100..400)"""
    info = get_xp_for_next_level(150)

    assert info.current == 50
    assert info.needed == 250
    assert info.total == 300
    assert info.progress == pytest.approx(50 / 300)


def test_get_xp_for_next_level_at_zero():
    info = get_xp_for_next_level(0)

    assert info.current == 0
    assert info.needed == 100
    assert info.total == 100
    assert info.progress == 0


def test_get_xp_for_next_level_on_boundary():
    info = get_xp_for_next_level(400)

    assert info.current == 0
    assert info.needed == 500
    assert info.progress == 0


# ============================================================================
# XP Award Tests
# ============================================================================

@pytest.mark.parametrize("activity,details,expected", [
    (ActivityType.QUIZ_COMPLETED, {}, 50),
    (ActivityType.QUIZ_COMPLETED, {"difficulty": "easy"}, 50),
    (ActivityType.QUIZ_COMPLETED, {"difficulty": "medium"}, 60),
    (ActivityType.QUIZ_COMPLETED, {"difficulty": "hard"}, 75),
    (ActivityType.QUIZ_PERFECT, {"difficulty": "medium"}, 150),
    (ActivityType.QUIZ_PERFECT, {"difficulty": "hard"}, 200),
    (ActivityType.FIRST_ATTEMPT_CORRECT, {}, 10),
    (ActivityType.DAILY_LOGIN, {}, 25),
    (ActivityType.QUIZ_CREATED, {}, 75),
    (ActivityType.CLASS_JOINED, {}, 30),
    (ActivityType.LEADERBOARD_CLIMB, {}, 40),
])
def test_calculate_xp_award_rule_table(activity, details, expected):
    assert calculate_xp_award(activity, details) == expected


def test_unknown_difficulty_leaves_base():
    """Test a detail value missing from the table does not change the award"""
    assert calculate_xp_award(ActivityType.QUIZ_COMPLETED, {"difficulty": "extreme"}) == 50


def test_streak_bonus_scales_with_streak():
    assert calculate_xp_award(ActivityType.STREAK_BONUS, {"streak": 5}) == 10
    assert calculate_xp_award(ActivityType.STREAK_BONUS, {"streak": 15}) == 30


def test_streak_bonus_multiplier_is_capped():
    assert calculate_xp_award(ActivityType.STREAK_BONUS, {"streak": 100}) == 40


def test_falsy_detail_skips_multiplier():
    """Test streak 0 does not zero out the award"""
    assert calculate_xp_award(ActivityType.STREAK_BONUS, {"streak": 0}) == 20


def test_reward_activities_use_explicit_amount():
    assert calculate_xp_award(ActivityType.ACHIEVEMENT_UNLOCKED, {"xp": 125}) == 125
    assert calculate_xp_award(ActivityType.CHALLENGE_COMPLETED, {"xp": 750}) == 750


def test_reward_activities_fall_back_to_base():
    assert calculate_xp_award(ActivityType.ACHIEVEMENT_UNLOCKED, {}) == 200
    assert calculate_xp_award(ActivityType.CHALLENGE_COMPLETED, {}) == 150


def test_explicit_amount_ignored_for_rule_activities():
    assert calculate_xp_award(ActivityType.QUIZ_COMPLETED, {"xp": 9999}) == 50


def test_non_numeric_streak_leaves_base():
    """Test a streak detail that is not a number awards the base amount"""
    assert calculate_xp_award(ActivityType.STREAK_BONUS, {"streak": "5"}) == 20
    assert calculate_xp_award(ActivityType.STREAK_BONUS, {"streak": ["5"]}) == 20


def test_non_numeric_amount_falls_back_to_base():
    assert calculate_xp_award(ActivityType.ACHIEVEMENT_UNLOCKED, {"xp": "lots"}) == 200
    assert calculate_xp_award(ActivityType.CHALLENGE_COMPLETED, {"xp": {"amount": 5}}) == 150
    assert calculate_xp_award(ActivityType.CHALLENGE_COMPLETED, {"xp": float("inf")}) == 150


def test_boost_multiplies_award():
    boost = ActiveBoost(
        id="bonus_xp_week",
        name="2x XP Week",
        multiplier=2.0,
        unlocked_at=NOW,
        expires_at=NOW + timedelta(days=7),
    )

    assert calculate_xp_award(ActivityType.QUIZ_COMPLETED, {"difficulty": "hard"}, [boost]) == 150


def test_calculate_xp_award_is_deterministic():
    details = {"difficulty": "medium", "streak": 4}
    awards = {calculate_xp_award(ActivityType.QUIZ_PERFECT, details) for _ in range(20)}
    assert awards == {150}


@pytest.mark.parametrize("value,expected", [
    (2.5, 3),
    (3.5, 4),
    (2.49, 2),
    (0.5, 1),
    (0.0, 0),
    (-2.5, -3),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_resolve_activity():
    assert resolve_activity("quiz_completed") == ActivityType.QUIZ_COMPLETED
    assert resolve_activity(ActivityType.DAILY_LOGIN) == ActivityType.DAILY_LOGIN
    assert resolve_activity("watched_video") is None


# ============================================================================
# Level Reward Tests
# ============================================================================

def test_rewards_between_single_level():
    rewards = rewards_between(4, 5)

    assert [r.id for r in rewards] == ["novice_learner"]
    assert rewards[0].kind == LevelRewardKind.BADGE


def test_rewards_between_skipped_levels():
    """Test jumping several levels collects every reward crossed"""
    rewards = rewards_between(4, 16)

    assert [r.id for r in rewards] == ["novice_learner", "dedicated_student", "custom_avatar"]


def test_rewards_between_no_crossing():
    assert rewards_between(5, 5) == []
    assert rewards_between(6, 9) == []


def test_boost_from_reward_window():
    boost = boost_from_reward(LEVEL_REWARDS[25], NOW)

    assert boost.id == "bonus_xp_week"
    assert boost.multiplier == 2.0
    assert boost.expires_at == NOW + timedelta(days=7)
    assert boost.is_active(NOW)
    assert boost.is_active(NOW + timedelta(days=6, hours=23))
    assert not boost.is_active(NOW + timedelta(days=7))


def test_format_level_display():
    display = format_level_display(450)

    assert "Level 3" in display
    assert "450 XP" in display
    assert "50/500" in display
