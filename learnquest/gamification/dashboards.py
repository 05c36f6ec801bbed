"""
Gamification Summary

Read-only snapshot of a user's XP, level, streak, achievements, badges and
challenges, plus a plain-text digest for display.
"""

import logging
from datetime import datetime
from typing import Iterable, List

from learnquest.gamification.achievement_system import AchievementEngine
from learnquest.gamification.badges import BadgeRegistry
from learnquest.gamification.challenges import ChallengeTracker
from learnquest.gamification.xp_system import calculate_level, get_xp_for_next_level
from learnquest.models.gamification import GamificationSummary, StreakState

logger = logging.getLogger(__name__)


def build_summary(
    total_xp: int,
    streak: StreakState,
    achievements: AchievementEngine,
    badges: BadgeRegistry,
    challenges: ChallengeTracker,
    unlocked_features: Iterable[str],
    now: datetime,
) -> GamificationSummary:
    """
    Assemble the summary from live session components

    Nothing is written; returned collections are copies.

    Args:
        total_xp: Cumulative XP
        streak: Current streak state
        achievements: Achievement engine holding the unlocked set
        badges: Badge registry
        challenges: Challenge tracker
        unlocked_features: Feature flags granted by level rewards
        now: Current time (expired challenges are left out of active_challenges)

    Returns:
        GamificationSummary
    """
    unlocked = achievements.recent()

    return GamificationSummary(
        xp=total_xp,
        level=calculate_level(total_xp),
        next_level_progress=get_xp_for_next_level(total_xp),
        streak=streak.count,
        best_streak=streak.best,
        achievements=[a.model_copy(deep=True) for a in unlocked],
        badges=[b.model_copy(deep=True) for b in badges.list()],
        active_challenges=[c.model_copy(deep=True) for c in challenges.active(now)],
        completed_challenge_count=challenges.completed_count(),
        unlocked_features=sorted(unlocked_features),
    )


def format_summary_display(summary: GamificationSummary) -> str:
    """
    Format the summary as a plain-text digest

    Args:
        summary: Summary snapshot

    Returns:
        Formatted digest string for display
    """
    progress = summary.next_level_progress
    filled = int(progress.progress * 10)
    bar = "▓" * filled + "░" * (10 - filled)

    lines: List[str] = [
        "📊 **YOUR LEARNING PROGRESS**",
        "",
        f"⭐ **Level {summary.level}** ({summary.xp} XP)",
        f"{bar} {progress.current}/{progress.total} ({progress.needed} XP to level {summary.level + 1})",
        "",
    ]

    if summary.streak > 0:
        line = f"🔥 {summary.streak}-day streak"
        if summary.best_streak > summary.streak:
            line += f" (best: {summary.best_streak})"
        lines.append(line)
    else:
        lines.append("🔥 No active streak - take a quiz today to start one!")

    lines.append("")
    lines.append(f"🏆 **ACHIEVEMENTS** ({len(summary.achievements)} unlocked)")
    for achievement in summary.achievements[:3]:
        lines.append(f"  {achievement.icon} {achievement.name}")

    if summary.badges:
        lines.append("")
        lines.append(f"🏅 **BADGES** ({len(summary.badges)})")
        lines.append("  " + " ".join(b.icon for b in summary.badges))

    lines.append("")
    if summary.active_challenges:
        lines.append(f"🎯 **ACTIVE CHALLENGES** ({summary.completed_challenge_count} completed)")
        for challenge in summary.active_challenges:
            lines.append(f"  {challenge.icon} {challenge.title}: {challenge.progress}/{challenge.target}")
    else:
        lines.append(f"🎯 No active challenges ({summary.completed_challenge_count} completed)")

    if summary.unlocked_features:
        lines.append("")
        lines.append("🔓 Unlocked: " + ", ".join(f.replace("_", " ").title() for f in summary.unlocked_features))

    return "\n".join(lines)
