"""Monitoring infrastructure for learnquest"""
from learnquest.monitoring.sentry_config import init_sentry, capture_exception, capture_message, set_user_context
from learnquest.monitoring.prometheus_metrics import (
    metrics,
    track_xp_award,
    track_achievement_unlock,
    track_predicate_failure,
    track_challenge_completion,
    track_store_error,
)

__all__ = [
    "init_sentry",
    "capture_exception",
    "capture_message",
    "set_user_context",
    "metrics",
    "track_xp_award",
    "track_achievement_unlock",
    "track_predicate_failure",
    "track_challenge_completion",
    "track_store_error",
]
