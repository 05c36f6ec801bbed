"""
Challenge System

Time-boxed, target-bounded progress counters. A challenge pays its reward
(XP and/or a badge) exactly once, at the moment progress reaches target.

Challenge definitions come from a catalog provider: any object with
    async fetch_active_challenges() -> List[Challenge]
The shipped MockChallengeCatalog serves a fixed weekly set.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import uuid4

from learnquest.exceptions import ValidationError
from learnquest.models.gamification import Challenge, ChallengeReward, ChallengeStatus
from learnquest.utils.datetime_helpers import ensure_utc, now_utc

logger = logging.getLogger(__name__)


# ============================================
# Catalog Providers
# ============================================

class MockChallengeCatalog:
    """
    Stand-in catalog until the backend serves challenges

    End dates are relative to the clock so the set is always current.
    """

    def __init__(self, clock: Callable[[], datetime] = now_utc):
        self._clock = clock

    async def fetch_active_challenges(self) -> List[Challenge]:
        now = self._clock()
        return [
            Challenge(
                id="daily_quiz",
                title="Daily Quiz Challenge",
                description="Complete at least one quiz every day this week",
                type="daily",
                target=7,
                reward=ChallengeReward(xp=500, badge_id="daily_champion"),
                end_date=now + timedelta(days=7),
                icon="📅",
            ),
            Challenge(
                id="perfect_scores",
                title="Perfect Score Pursuit",
                description="Achieve 3 perfect scores this week",
                type="weekly",
                target=3,
                reward=ChallengeReward(xp=750, badge_id="perfectionist"),
                end_date=now + timedelta(days=4),
                icon="🎯",
            ),
            Challenge(
                id="category_explorer",
                title="Category Explorer",
                description="Take quizzes in 5 different categories",
                type="exploration",
                target=5,
                reward=ChallengeReward(xp=400, badge_id="explorer"),
                end_date=now + timedelta(days=10),
                icon="🗺️",
            ),
        ]


# ============================================
# Progress Tracking
# ============================================

def is_expired(challenge: Challenge, now: datetime) -> bool:
    """True once an active challenge's end date has passed"""
    return challenge.end_date is not None and ensure_utc(now) > ensure_utc(challenge.end_date)


class ChallengeTracker:
    """Challenge instances for one user, keyed by id"""

    # Descriptive fields refreshed from the catalog even when progress exists
    CATALOG_FIELDS = ("title", "description", "type", "icon", "end_date", "reward")

    def __init__(self):
        self._challenges: Dict[str, Challenge] = {}

    def get(self, challenge_id: str) -> Optional[Challenge]:
        return self._challenges.get(challenge_id)

    def all(self) -> List[Challenge]:
        return list(self._challenges.values())

    def active(self, now: datetime) -> List[Challenge]:
        """Active challenges that have not run past their end date"""
        return [
            c for c in self._challenges.values()
            if c.status == ChallengeStatus.ACTIVE and not is_expired(c, now)
        ]

    def completed_count(self) -> int:
        return sum(1 for c in self._challenges.values() if c.status == ChallengeStatus.COMPLETED)

    def advance(
        self,
        challenge_id: str,
        increment: int,
        now: datetime,
    ) -> Tuple[Optional[Challenge], bool, bool]:
        """
        Move a challenge's progress forward

        Args:
            challenge_id: Challenge to advance
            increment: Progress to add (negative values add nothing)
            now: Current time

        Returns:
            (challenge or None if unknown, state changed, completed by this call)
        """
        challenge = self._challenges.get(challenge_id)
        if challenge is None:
            return None, False, False

        if challenge.status == ChallengeStatus.COMPLETED:
            return challenge, False, False

        if is_expired(challenge, now):
            logger.info(f"Challenge {challenge_id} ended {challenge.end_date}; progress not recorded")
            return challenge, False, False

        new_progress = min(max(challenge.progress + max(increment, 0), 0), challenge.target)
        changed = new_progress != challenge.progress
        challenge.progress = new_progress

        completed_now = False
        if challenge.progress >= challenge.target:
            challenge.status = ChallengeStatus.COMPLETED
            challenge.completed_at = now
            completed_now = True
            changed = True

        return challenge, changed, completed_now

    def merge(self, definitions: Iterable[Challenge]) -> None:
        """
        Fold catalog definitions into the tracked instances

        Instances with progress (or already completed) keep their progress,
        status and target; only descriptive fields are refreshed. Untouched
        instances are replaced by the catalog's version. Instances the
        catalog no longer lists are kept.
        """
        for definition in definitions:
            existing = self._challenges.get(definition.id)

            if existing is not None and (existing.progress > 0 or existing.status == ChallengeStatus.COMPLETED):
                for name in self.CATALOG_FIELDS:
                    setattr(existing, name, getattr(definition, name))
                continue

            self._challenges[definition.id] = definition.model_copy(
                update={"progress": 0, "status": ChallengeStatus.ACTIVE, "completed_at": None},
                deep=True,
            )

    def create(
        self,
        title: str,
        description: str,
        target: int,
        challenge_type: str = "custom",
        reward: Optional[ChallengeReward] = None,
        end_date: Optional[datetime] = None,
        icon: str = "🎯",
    ) -> Challenge:
        """Add a user-defined challenge"""
        if target <= 0:
            raise ValidationError("Target must be positive", field="target", value=target)

        challenge = Challenge(
            id=f"challenge_{uuid4().hex[:12]}",
            title=title,
            description=description,
            type=challenge_type,
            target=target,
            reward=reward or ChallengeReward(),
            end_date=end_date,
            icon=icon,
        )
        self._challenges[challenge.id] = challenge
        return challenge

    def load(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Restore stored challenges; ids already tracked keep their current state"""
        for record in records:
            try:
                challenge = Challenge.model_validate(record)
            except ValueError as e:
                logger.warning(f"Skipping unreadable stored challenge {record!r}: {e}")
                continue
            challenge.progress = min(challenge.progress, challenge.target)
            self._challenges.setdefault(challenge.id, challenge)

    def dump(self) -> List[Dict[str, Any]]:
        return [c.model_dump(mode="json") for c in self._challenges.values()]


def format_challenge_progress(challenge: Challenge) -> str:
    """
    Format challenge progress for display

    Args:
        challenge: Challenge instance

    Returns:
        Formatted progress display
    """
    progress_pct = min((challenge.progress / challenge.target) * 100, 100)
    bar_length = int(progress_pct / 5)  # 20 chars total
    bar = "▓" * bar_length + "░" * (20 - bar_length)
    status_icon = "✅" if challenge.status == ChallengeStatus.COMPLETED else "⏳"

    return (
        f"{challenge.icon} **{challenge.title}** {status_icon}\n"
        f"Progress: {bar} {int(progress_pct)}%\n"
        f"**{challenge.progress}/{challenge.target}**"
    )
