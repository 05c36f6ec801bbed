"""Gamification models"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import date, datetime

from learnquest.utils.datetime_helpers import ensure_utc


class AchievementInstance(BaseModel):
    """User's unlocked achievement"""
    # Stored records may carry fields newer releases added
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    description: str = ""
    icon: str = ""
    xp_reward: int = 0
    unlocked_at: datetime


class BadgeInstance(BaseModel):
    """Badge awarded to the user"""
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    description: str = ""
    icon: str = "🏅"
    awarded_at: datetime


class StreakState(BaseModel):
    """Daily learning streak"""
    count: int = Field(default=0, ge=0)
    best: int = Field(default=0, ge=0)
    last_activity_date: Optional[date] = None


class ActiveBoost(BaseModel):
    """Time-boxed XP multiplier unlocked as a level reward"""
    id: str
    name: str
    multiplier: float
    unlocked_at: datetime
    expires_at: datetime

    def is_active(self, now: datetime) -> bool:
        now = ensure_utc(now)
        return ensure_utc(self.unlocked_at) <= now < ensure_utc(self.expires_at)


class LevelUpEvent(BaseModel):
    """Most recent level-up"""
    level: int
    previous_level: int
    timestamp: datetime
    rewards: List[str] = Field(default_factory=list)


class XPAwardResult(BaseModel):
    """Outcome of a single XP award"""
    xp_awarded: int
    total_xp: int
    new_level: int
    level_up: bool = False
    previous_level: int
    rewards: List[str] = Field(default_factory=list)
    achievements_unlocked: List[str] = Field(default_factory=list)


class LevelProgress(BaseModel):
    """Progress through the current level"""
    current: int
    needed: int
    total: int
    progress: float


class ChallengeStatus(str, Enum):
    """Challenge status"""
    ACTIVE = "active"
    COMPLETED = "completed"


class ChallengeReward(BaseModel):
    """What completing a challenge pays out"""
    xp: Optional[int] = None
    badge_id: Optional[str] = None


class Challenge(BaseModel):
    """Challenge definition merged with the user's progress on it"""
    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    description: str = ""
    type: str = "custom"
    target: int = Field(gt=0)
    progress: int = Field(default=0, ge=0)
    reward: ChallengeReward = Field(default_factory=ChallengeReward)
    status: ChallengeStatus = ChallengeStatus.ACTIVE
    end_date: Optional[datetime] = None
    icon: str = "🎯"
    completed_at: Optional[datetime] = None


class UserStats(BaseModel):
    """Aggregate learner statistics from the statistics API"""
    total_quizzes: int = 0
    categories_attempted: List[str] = Field(default_factory=list)
    classes_joined: int = 0


class RawScore(BaseModel):
    """Unranked leaderboard value for one user"""
    user_id: str
    value: float
    display_name: Optional[str] = None


class LeaderboardEntry(BaseModel):
    """Ranked leaderboard row"""
    rank: int
    user_id: str
    display_name: str
    value: float
    level: Optional[int] = None
    badge_tier: Optional[str] = None


class LeaderboardResult(BaseModel):
    """Ranked leaderboard page"""
    metric: str
    timeframe: str
    data: List[LeaderboardEntry] = Field(default_factory=list)
    user_rank: Optional[int] = None
    total_users: int = 0


class GamificationSummary(BaseModel):
    """Read-only snapshot of a user's gamification state"""
    xp: int = 0
    level: int = 1
    next_level_progress: LevelProgress
    streak: int = 0
    best_streak: int = 0
    achievements: List[AchievementInstance] = Field(default_factory=list)
    badges: List[BadgeInstance] = Field(default_factory=list)
    active_challenges: List[Challenge] = Field(default_factory=list)
    completed_challenge_count: int = 0
    unlocked_features: List[str] = Field(default_factory=list)
