"""
Standardized exception hierarchy for learnquest
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

import httpx

logger = logging.getLogger(__name__)


class LearnQuestError(Exception):
    """
    Base exception for all learnquest errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise LearnQuestError(
            message="Failed to load challenge catalog",
            user_id="user_42",
            operation="load_active_challenges",
            context={"provider": "MockChallengeCatalog"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,  # Avoid conflict with logging's 'context'
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(LearnQuestError):
    """
    Raised when caller input fails validation

    Examples:
    - Non-positive challenge target
    - Unparseable timezone name

    Example:
        raise ValidationError(
            message="Target must be positive",
            field="target",
            value=0,
            user_id="user_42"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(LearnQuestError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# External API Errors
# ==========================================

class ExternalAPIError(LearnQuestError):
    """
    Base class for external API failures
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"We're having trouble connecting to {service or 'an external service'}. Please try again later.",
        )
        context = {"service": service, "status_code": status_code}
        context.update(kwargs.pop("context", None) or {})
        super().__init__(
            message=message,
            context=context,
            **kwargs
        )


class StatisticsUnavailableError(ExternalAPIError):
    """Learner statistics API error"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            service="Learner Statistics",
            user_message="Some achievements could not be checked right now. They will be checked again later.",
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: httpx.HTTPError,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> StatisticsUnavailableError:
    """
    Wrap httpx failures into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        StatisticsUnavailableError carrying the original as its cause

    Example:
        try:
            response = await client.get("/analytics/my-stats")
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation="get_user_stats")
    """
    if isinstance(error, httpx.TimeoutException):
        return StatisticsUnavailableError(
            message=f"API request timed out: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, httpx.HTTPStatusError):
        return StatisticsUnavailableError(
            message=f"API returned error: {error.response.status_code}",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    return StatisticsUnavailableError(
        message=f"API request failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
