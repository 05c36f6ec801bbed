"""
Learner statistics providers

Deferred achievement predicates ("complete 50 quizzes", "try 5 categories")
need aggregate counts the engagement core does not own. A provider is any
object with:
    async get_user_stats() -> UserStats
which may raise (or hang, bounded by the predicate timeout).
"""

import logging
from typing import Any, Optional

import httpx

from learnquest.config import STATISTICS_HTTP_TIMEOUT
from learnquest.exceptions import StatisticsUnavailableError, wrap_external_exception
from learnquest.models.gamification import UserStats

logger = logging.getLogger(__name__)

HISTORY_PAGE_SIZE = 100


class HttpStatisticsProvider:
    """
    Reads learner statistics from the quiz analytics API.

    Endpoints:
    - GET /analytics/my-stats   -> data.stats.totalQuizzes
    - GET /analytics/my-history -> data.history[].quiz.category
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = STATISTICS_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise wrap_external_exception(
                e,
                operation="get_user_stats",
                context={"path": path},
            ) from e
        except ValueError as e:
            raise StatisticsUnavailableError(
                f"Malformed JSON from {path}",
                operation="get_user_stats",
                cause=e,
            ) from e

    async def get_user_stats(self) -> UserStats:
        """
        Fetch aggregate statistics for the signed-in learner

        Returns:
            UserStats

        Raises:
            StatisticsUnavailableError: on HTTP failure, timeout or bad payload
        """
        stats_payload = await self._get_json("/analytics/my-stats")
        history_payload = await self._get_json(
            "/analytics/my-history",
            params={"page": 1, "limit": HISTORY_PAGE_SIZE},
        )

        stats = (stats_payload.get("data") or {}).get("stats") or {}
        history = (history_payload.get("data") or {}).get("history") or []

        categories = []
        for attempt in history:
            category = (attempt.get("quiz") or {}).get("category")
            if category and category not in categories:
                categories.append(category)

        result = UserStats(
            total_quizzes=stats.get("totalQuizzes", stats.get("totalQuizzesTaken", 0)) or 0,
            categories_attempted=categories,
            classes_joined=stats.get("classesJoined", 0) or 0,
        )
        logger.debug(
            f"Fetched learner stats: {result.total_quizzes} quizzes, "
            f"{len(result.categories_attempted)} categories"
        )
        return result


class StaticStatisticsProvider:
    """Serves fixed statistics (offline sessions, tests)"""

    def __init__(self, stats: Optional[UserStats] = None):
        self.stats = stats or UserStats()

    async def get_user_stats(self) -> UserStats:
        return self.stats
