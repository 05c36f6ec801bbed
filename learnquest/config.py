"""Configuration management"""
import os
from dotenv import load_dotenv

from learnquest.exceptions import ConfigurationError

load_dotenv()

# Storage
# - 'memory': in-process store (tests, offline sessions)
# - 'redis': durable store at REDIS_URL
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory").lower()
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
STORE_KEY_PREFIX: str = os.getenv("STORE_KEY_PREFIX", "learnquest")

# Statistics API (used by achievements that need aggregate counts)
STATISTICS_API_URL: str = os.getenv("STATISTICS_API_URL", "")
STATISTICS_API_TOKEN: str = os.getenv("STATISTICS_API_TOKEN", "")
STATISTICS_HTTP_TIMEOUT: float = float(os.getenv("STATISTICS_HTTP_TIMEOUT", "5.0"))

# Achievement predicates that suspend on an external lookup give up after this
PREDICATE_TIMEOUT_SECONDS: float = float(os.getenv("PREDICATE_TIMEOUT_SECONDS", "3.0"))

# Calendar days for streaks are evaluated in this IANA timezone
DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Leaderboard
LEADERBOARD_DEFAULT_LIMIT: int = int(os.getenv("LEADERBOARD_DEFAULT_LIMIT", "50"))

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Monitoring
ENABLE_PROMETHEUS: bool = os.getenv("ENABLE_PROMETHEUS", "false").lower() == "true"
ENABLE_SENTRY: bool = os.getenv("ENABLE_SENTRY", "false").lower() == "true"
SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE: float = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    if STORAGE_BACKEND not in ("memory", "redis"):
        raise ConfigurationError(
            f"Unsupported STORAGE_BACKEND '{STORAGE_BACKEND}'",
            config_key="STORAGE_BACKEND",
        )
    if STORAGE_BACKEND == "redis" and not REDIS_URL:
        raise ConfigurationError("REDIS_URL is required for the redis backend", config_key="REDIS_URL")
    if PREDICATE_TIMEOUT_SECONDS <= 0:
        raise ConfigurationError(
            "PREDICATE_TIMEOUT_SECONDS must be positive",
            config_key="PREDICATE_TIMEOUT_SECONDS",
        )
    if LEADERBOARD_DEFAULT_LIMIT <= 0:
        raise ConfigurationError(
            "LEADERBOARD_DEFAULT_LIMIT must be positive",
            config_key="LEADERBOARD_DEFAULT_LIMIT",
        )
    # Statistics API is optional (deferred achievements stay locked without it)
