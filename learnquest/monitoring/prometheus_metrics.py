"""Prometheus metrics definitions and helpers"""
import logging
from learnquest.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """Container for all Prometheus metrics"""

    def __init__(self, enabled: bool = ENABLE_PROMETHEUS, registry=None):
        if not enabled:
            logger.info("Prometheus metrics disabled")
            self._enabled = False
            return

        try:
            from prometheus_client import REGISTRY, Counter

            registry = registry or REGISTRY

            self.xp_awarded_total = Counter(
                'learnquest_xp_awarded_total',
                'Total XP awarded',
                ['activity_type'],
                registry=registry
            )

            self.level_ups_total = Counter(
                'learnquest_level_ups_total',
                'Total level-up events',
                registry=registry
            )

            self.achievements_unlocked_total = Counter(
                'learnquest_achievements_unlocked_total',
                'Total achievements unlocked',
                ['achievement_id'],
                registry=registry
            )

            self.predicate_failures_total = Counter(
                'learnquest_predicate_failures_total',
                'Achievement predicates that errored or timed out',
                ['achievement_id', 'reason'],
                registry=registry
            )

            self.challenges_completed_total = Counter(
                'learnquest_challenges_completed_total',
                'Total challenges completed',
                ['challenge_id'],
                registry=registry
            )

            self.store_errors_total = Counter(
                'learnquest_store_errors_total',
                'Persistent store operations that failed',
                ['operation'],
                registry=registry
            )

            self._enabled = True
            logger.info("Prometheus metrics initialized")

        except ImportError:
            logger.error("prometheus-client not installed. Install with: pip install prometheus-client")
            self._enabled = False
        except Exception as e:
            logger.error(f"Failed to initialize Prometheus metrics: {e}", exc_info=True)
            self._enabled = False

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled"""
        return self._enabled


# Global metrics instance
metrics = PrometheusMetrics()


def track_xp_award(activity_type: str, amount: int, level_up: bool = False) -> None:
    """Track an XP award"""
    if not metrics.enabled:
        return

    metrics.xp_awarded_total.labels(activity_type=activity_type).inc(amount)
    if level_up:
        metrics.level_ups_total.inc()


def track_achievement_unlock(achievement_id: str) -> None:
    """Track an achievement unlock"""
    if not metrics.enabled:
        return

    metrics.achievements_unlocked_total.labels(achievement_id=achievement_id).inc()


def track_predicate_failure(achievement_id: str, reason: str) -> None:
    """Track a predicate that could not be evaluated (error or timeout)"""
    if not metrics.enabled:
        return

    metrics.predicate_failures_total.labels(
        achievement_id=achievement_id,
        reason=reason
    ).inc()


def track_challenge_completion(challenge_id: str) -> None:
    """Track a challenge completion"""
    if not metrics.enabled:
        return

    metrics.challenges_completed_total.labels(challenge_id=challenge_id).inc()


def track_store_error(operation: str) -> None:
    """Track a failed store read/write"""
    if not metrics.enabled:
        return

    metrics.store_errors_total.labels(operation=operation).inc()
