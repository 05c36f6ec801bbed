"""
Gamification system for LearnQuest

Turns learner activity into:
- XP and levels (with level-up rewards and XP boosts)
- Daily learning streaks
- One-time achievements and streak milestones
- Badges
- Time-boxed challenges
- Leaderboards and a progress summary

Everything for one user is reached through a GamificationSession. The
format_* helpers render session results as chat-ready text.
"""

from learnquest.gamification.session import GamificationSession, create_session
from learnquest.gamification.xp_system import (
    ActivityType,
    calculate_level,
    format_level_display,
    get_xp_for_next_level,
)
from learnquest.gamification.streak_system import format_streak_display
from learnquest.gamification.achievement_system import format_achievement_unlock_message
from learnquest.gamification.badges import format_badges_display
from learnquest.gamification.challenges import format_challenge_progress
from learnquest.gamification.leaderboard import LeaderboardMetric, Timeframe, format_leaderboard_display
from learnquest.gamification.dashboards import format_summary_display

__all__ = [
    "GamificationSession",
    "create_session",
    "ActivityType",
    "calculate_level",
    "get_xp_for_next_level",
    "LeaderboardMetric",
    "Timeframe",
    # Display
    "format_level_display",
    "format_streak_display",
    "format_achievement_unlock_message",
    "format_badges_display",
    "format_challenge_progress",
    "format_leaderboard_display",
    "format_summary_display",
]
