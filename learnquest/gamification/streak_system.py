"""
Daily Learning Streak Tracking

A streak counts consecutive calendar days with at least one learning
activity. Days are compared in the session timezone (see
learnquest.utils.datetime_helpers).

Transitions, comparing the activity's calendar day to the last one:
- same day: no change
- next day: streak + 1
- earlier day (late-arriving event): no change
- anything else (first activity, gap of 2+ days): streak restarts at 1
"""

from datetime import date
from enum import Enum
from typing import Tuple
import logging

from learnquest.models.gamification import StreakState
from learnquest.utils.datetime_helpers import days_between

logger = logging.getLogger(__name__)

# Streaks at or above this length earn streak_bonus XP every new day
STREAK_BONUS_THRESHOLD = 3


class StreakOutcome(str, Enum):
    """How an activity day moved the streak"""
    STARTED = "started"
    SAME_DAY = "same_day"
    CONTINUED = "continued"
    RESET = "reset"
    BACKDATED = "backdated"


def compute_streak(state: StreakState, activity_day: date) -> Tuple[StreakState, StreakOutcome]:
    """
    Apply one activity day to a streak

    Args:
        state: Current streak state
        activity_day: Calendar day of the activity

    Returns:
        (new state, outcome). SAME_DAY and BACKDATED return the state unchanged.
    """
    last_day = state.last_activity_date

    if last_day is None:
        return StreakState(count=1, best=max(state.best, 1), last_activity_date=activity_day), StreakOutcome.STARTED

    gap_days = days_between(last_day, activity_day)

    if gap_days == 0:
        return state, StreakOutcome.SAME_DAY

    if gap_days < 0:
        return state, StreakOutcome.BACKDATED

    if gap_days == 1:
        count = state.count + 1
        return StreakState(count=count, best=max(state.best, count), last_activity_date=activity_day), StreakOutcome.CONTINUED

    logger.info(f"Streak broken: was {state.count}, gap was {gap_days} days")
    return StreakState(count=1, best=max(state.best, 1), last_activity_date=activity_day), StreakOutcome.RESET


def format_streak_display(state: StreakState) -> str:
    """
    Format streak for display

    Args:
        state: Current streak state

    Returns:
        Formatted string for display
    """
    if state.count == 0:
        return "No active streak yet. Take a quiz today to start one! 💪"

    line = f"🔥 {state.count}-day learning streak"
    if state.best > state.count:
        line += f" (best: {state.best})"
    return line
