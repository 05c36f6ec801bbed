"""Unit tests for custom exception hierarchy"""
import httpx
import pytest
from datetime import datetime

from learnquest.exceptions import (
    ConfigurationError,
    ExternalAPIError,
    LearnQuestError,
    StatisticsUnavailableError,
    ValidationError,
    wrap_external_exception,
)


class TestLearnQuestError:
    """Test base exception class"""

    def test_basic_exception(self):
        error = LearnQuestError("Test error")
        assert error.message == "Test error"
        assert error.user_message == "An error occurred. Please try again."
        assert error.request_id is not None
        assert isinstance(error.timestamp, datetime)

    def test_exception_with_context(self):
        error = LearnQuestError(
            message="Failed to load challenge catalog",
            user_id="learner_42",
            operation="load_active_challenges",
            context={"provider": "MockChallengeCatalog"},
            user_message="Challenges are unavailable right now",
        )
        assert error.user_id == "learner_42"
        assert error.operation == "load_active_challenges"
        assert error.context["provider"] == "MockChallengeCatalog"
        assert error.user_message == "Challenges are unavailable right now"

    def test_exception_with_cause(self):
        original_error = ValueError("Invalid value")
        error = LearnQuestError(message="Validation failed", cause=original_error)
        assert error.cause == original_error


class TestSubclasses:

    def test_validation_error(self):
        error = ValidationError("Target must be positive", field="target", value=0)

        assert isinstance(error, LearnQuestError)
        assert error.field == "target"
        assert error.value == 0
        assert "target" in error.user_message

    def test_configuration_error(self):
        error = ConfigurationError("Bad backend", config_key="STORAGE_BACKEND")

        assert error.config_key == "STORAGE_BACKEND"
        assert error.context["config_key"] == "STORAGE_BACKEND"

    def test_external_api_error_merges_context(self):
        error = ExternalAPIError("Down", service="Quiz API", status_code=502, context={"path": "/x"})

        assert error.context == {"service": "Quiz API", "status_code": 502, "path": "/x"}
        assert "Quiz API" in error.user_message

    def test_statistics_unavailable_is_external(self):
        error = StatisticsUnavailableError("Stats down")

        assert isinstance(error, ExternalAPIError)
        assert error.service == "Learner Statistics"


class TestWrapExternalException:

    def _request(self):
        return httpx.Request("GET", "https://quiz.example.com/api/analytics/my-stats")

    def test_wraps_timeout(self):
        error = wrap_external_exception(httpx.ReadTimeout("slow", request=self._request()), operation="get_user_stats")

        assert isinstance(error, StatisticsUnavailableError)
        assert "timed out" in error.message

    def test_wraps_status_error(self):
        request = self._request()
        response = httpx.Response(404, request=request)
        original = httpx.HTTPStatusError("not found", request=request, response=response)

        error = wrap_external_exception(original, operation="get_user_stats", context={"path": "/analytics/my-stats"})

        assert isinstance(error, StatisticsUnavailableError)
        assert error.status_code == 404
        assert error.context["path"] == "/analytics/my-stats"
        assert error.cause is original

    def test_wraps_transport_error(self):
        error = wrap_external_exception(httpx.ConnectError("refused", request=self._request()), operation="get_user_stats")

        assert isinstance(error, StatisticsUnavailableError)
