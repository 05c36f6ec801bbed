"""Global test fixtures and utilities for learnquest tests"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from learnquest.gamification.challenges import MockChallengeCatalog
from learnquest.gamification.leaderboard import MockLeaderboardProvider
from learnquest.gamification.session import GamificationSession
from learnquest.models.gamification import UserStats
from learnquest.providers.statistics import StaticStatisticsProvider
from learnquest.store import InMemoryStore


class FakeClock:
    """Settable clock for deterministic timestamps"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RefusingStore(InMemoryStore):
    """Store whose writes always fail"""

    async def set(self, key: str, value: str) -> bool:
        return False


# ============================================================================
# User & Time Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "learner_42"


@pytest.fixture
def fixed_now():
    """Fixed point in time (midday UTC)"""
    return datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    return FakeClock(fixed_now)


# ============================================================================
# Store & Provider Fixtures
# ============================================================================

@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def refusing_store():
    return RefusingStore()


@pytest.fixture
def user_stats():
    """Statistics for a learner with modest history"""
    return UserStats(total_quizzes=3, categories_attempted=["math"], classes_joined=1)


@pytest.fixture
def statistics(user_stats):
    return StaticStatisticsProvider(user_stats)


@pytest.fixture
def failing_statistics():
    """Statistics provider whose lookup raises"""
    provider = AsyncMock()
    provider.get_user_stats = AsyncMock(side_effect=RuntimeError("statistics backend down"))
    return provider


# ============================================================================
# Session Fixtures
# ============================================================================

@pytest.fixture
def make_session(test_user_id, memory_store, statistics, clock):
    """Factory for sessions wired to in-memory collaborators"""

    async def _make(**overrides) -> GamificationSession:
        user_id = overrides.pop("user_id", test_user_id)
        kwargs = {
            "store": memory_store,
            "statistics": statistics,
            "challenge_catalog": MockChallengeCatalog(clock),
            "leaderboard_provider": MockLeaderboardProvider(size=10),
            "clock": clock,
            "timezone": "UTC",
        }
        kwargs.update(overrides)
        session = GamificationSession(user_id, **kwargs)
        await session.initialize()
        return session

    return _make


@pytest.fixture
async def session(make_session):
    """Initialized session with no prior state"""
    return await make_session()
