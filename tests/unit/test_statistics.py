"""Unit tests for statistics providers (learnquest/providers/statistics.py)"""
import httpx
import pytest

from learnquest.exceptions import StatisticsUnavailableError
from learnquest.models.gamification import UserStats
from learnquest.providers.statistics import HttpStatisticsProvider, StaticStatisticsProvider


STATS_PAYLOAD = {"data": {"stats": {"totalQuizzes": 42, "classesJoined": 2}}}
HISTORY_PAYLOAD = {
    "data": {
        "history": [
            {"quiz": {"category": "math"}},
            {"quiz": {"category": "science"}},
            {"quiz": {"category": "math"}},
            {"quiz": {}},
            {"score": 80},
        ]
    }
}


def _provider(handler) -> HttpStatisticsProvider:
    return HttpStatisticsProvider(
        "https://quiz.example.com/api/",
        token="secret-token",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_http_provider_reads_stats_and_history():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/analytics/my-stats"):
            return httpx.Response(200, json=STATS_PAYLOAD)
        if request.url.path.endswith("/analytics/my-history"):
            return httpx.Response(200, json=HISTORY_PAYLOAD)
        return httpx.Response(404)

    provider = _provider(handler)
    stats = await provider.get_user_stats()
    await provider.close()

    assert stats.total_quizzes == 42
    assert stats.classes_joined == 2
    assert stats.categories_attempted == ["math", "science"]

    assert seen[0].headers["Authorization"] == "Bearer secret-token"
    assert seen[1].url.params["page"] == "1"
    assert seen[1].url.params["limit"] == "100"


@pytest.mark.asyncio
async def test_http_provider_accepts_legacy_total_field():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/analytics/my-stats"):
            return httpx.Response(200, json={"data": {"stats": {"totalQuizzesTaken": 7}}})
        return httpx.Response(200, json={"data": {"history": []}})

    provider = _provider(handler)
    stats = await provider.get_user_stats()
    await provider.close()

    assert stats.total_quizzes == 7
    assert stats.categories_attempted == []


@pytest.mark.asyncio
async def test_http_provider_wraps_status_errors():
    provider = _provider(lambda request: httpx.Response(503))

    with pytest.raises(StatisticsUnavailableError) as exc_info:
        await provider.get_user_stats()
    await provider.close()

    assert exc_info.value.status_code == 503
    assert exc_info.value.operation == "get_user_stats"


@pytest.mark.asyncio
async def test_http_provider_wraps_timeouts():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    provider = _provider(handler)

    with pytest.raises(StatisticsUnavailableError):
        await provider.get_user_stats()
    await provider.close()


@pytest.mark.asyncio
async def test_http_provider_rejects_malformed_json():
    provider = _provider(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

    with pytest.raises(StatisticsUnavailableError):
        await provider.get_user_stats()
    await provider.close()


@pytest.mark.asyncio
async def test_static_provider():
    stats = UserStats(total_quizzes=5)

    assert await StaticStatisticsProvider(stats).get_user_stats() is stats
    assert (await StaticStatisticsProvider().get_user_stats()).total_quizzes == 0
