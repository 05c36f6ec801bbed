"""
Persistent state stores

Any object with these coroutines can back a session:
    get(key) -> Optional[str]   (raises when the read fails)
    set(key, value) -> bool   (False means the write failed)
"""

from learnquest.store.memory_store import InMemoryStore
from learnquest.store.redis_store import RedisStore

# Logical key names, namespaced per user by store_key()
XP_KEY = "user_xp"
STREAK_KEY = "user_streak"
ACHIEVEMENTS_KEY = "user_achievements"
BADGES_KEY = "user_badges"
FEATURES_KEY = "unlocked_features"
BOOSTS_KEY = "active_boosts"
LAST_LEVEL_UP_KEY = "last_level_up"
CHALLENGES_KEY = "user_challenges"


def store_key(prefix: str, user_id: str, name: str) -> str:
    """Build the namespaced key for one user's piece of state"""
    return f"{prefix}:{user_id}:{name}"


__all__ = [
    "InMemoryStore",
    "RedisStore",
    "store_key",
    "XP_KEY",
    "STREAK_KEY",
    "ACHIEVEMENTS_KEY",
    "BADGES_KEY",
    "FEATURES_KEY",
    "BOOSTS_KEY",
    "LAST_LEVEL_UP_KEY",
    "CHALLENGES_KEY",
]
