"""
Unified exception hierarchy for TalentRank.
Single source of exceptions and error responses for the whole package.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field
from talentrank.core.id_generator import generate_id
from talentrank.core.utils.datetime_utils import utc_now, format_iso


# ============================================================================
# PART 1: PYTHON EXCEPTIONS (raise/catch)
# ============================================================================


class TalentRankError(Exception):
    """
    Base error of the system.

    - Structured serialization
    - Rich context
    - Resolution suggestions
    - Unique id for tracking
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        self.id: str = generate_id()
        self.timestamp: datetime = utc_now()
        self.message: str = message
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[Exception] = cause
        self.suggestions: List[str] = []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize for the API.

        Returns:
            {
                "error_id": "hex32chars",
                "code": "RateLimitedError",
                "message": "Provider rate limit reached",
                "timestamp": "2024-01-20T10:30:00Z",
                "context": {...}
            }
        """
        result: Dict[str, Any] = {
            "error_id": self.id,
            "code": self.code,
            "message": self.message,
            "timestamp": format_iso(self.timestamp),
            "context": self.context,
        }

        if self.cause:
            result["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}

        if self.suggestions:
            result["suggestions"] = self.suggestions

        return result

    def add_suggestion(self, suggestion: str) -> None:
        """Add a resolution hint (duplicates and empty strings are ignored)."""
        if not suggestion or not isinstance(suggestion, str):
            return

        if suggestion not in self.suggestions:
            self.suggestions.append(suggestion)

    def is_retryable(self) -> bool:
        """Whether the operation that raised this may succeed if attempted again."""
        return False


class ConfigurationError(TalentRankError):
    """Invalid or unreadable configuration."""

    pass


class ValidationError(TalentRankError):
    """
    Input rejected at an ingestion or API boundary.

    Context carries the offending ``field`` and ``reason``.
    """

    pass


class DimensionMismatchError(TalentRankError):
    """
    Two vectors of different length were compared.

    Data-quality problem: the comparison scores 0 and ranking continues.
    """

    def __init__(self, left: int, right: int, **kwargs: Any) -> None:
        context = kwargs.pop("context", None) or {}
        context.update({"left_dimensions": left, "right_dimensions": right})
        super().__init__(
            f"Vector dimension mismatch: {left} vs {right}", context=context, **kwargs
        )
        self.left = left
        self.right = right


class ProviderError(TalentRankError):
    """
    Error returned by the external embedding/completion provider.

    Tracks the HTTP status when one was received.
    """

    def __init__(self, message: str, status: Optional[int] = None, **kwargs: Any) -> None:
        context = kwargs.pop("context", None) or {}
        if status is not None:
            context["status"] = status
        super().__init__(message, context=context, **kwargs)
        self.status = status


class RateLimitedError(ProviderError):
    """Provider answered 429. Retryable."""

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs: Any) -> None:
        kwargs.setdefault("status", 429)
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        if retry_after is not None:
            self.context["retry_after"] = retry_after

    def is_retryable(self) -> bool:
        return True


class TransientProviderError(ProviderError):
    """Network failure, timeout or 5xx. Retryable."""

    def is_retryable(self) -> bool:
        return True


class AuthenticationError(ProviderError):
    """401/403 or missing credentials. Never retried."""

    pass


class MalformedRequestError(ProviderError):
    """Any other 4xx: the request itself is wrong. Never retried."""

    pass


class InvalidResponseError(ProviderError):
    """2xx answer whose body does not have the expected shape."""

    pass


class ProviderUnavailableError(ProviderError):
    """
    Derived terminal state for a single call.

    The embedding adapter reports this state as an ``UnavailableReason``;
    the HTTP layer raises it when a caller asked for the embedding itself.
    Answered with 503.
    """

    pass


def error_from_status(
    status: int, body: str = "", retry_after: Optional[float] = None
) -> ProviderError:
    """
    Map an HTTP status class onto the provider taxonomy.

    429 -> RateLimitedError, 5xx -> TransientProviderError,
    401/403 -> AuthenticationError, other 4xx -> MalformedRequestError.
    """
    snippet = body[:200] if body else ""
    message = f"Provider error {status}: {snippet}".rstrip(": ")

    if status == 429:
        return RateLimitedError(message, retry_after=retry_after)
    if status >= 500:
        return TransientProviderError(message, status=status)
    if status in (401, 403):
        return AuthenticationError(message, status=status)
    if 400 <= status < 500:
        return MalformedRequestError(message, status=status)
    return InvalidResponseError(message, status=status)


# ============================================================================
# PART 2: HTTP RESPONSE MODELS (API responses)
# ============================================================================


class ErrorType(str, Enum):
    """Error types the API can return."""

    VALIDATION = "validation_error"
    INTERNAL = "internal_error"
    EXTERNAL_SERVICE = "external_service_error"
    CONFIGURATION = "configuration_error"
    AUTHENTICATION = "authentication_error"
    RATE_LIMIT = "rate_limit_error"


class ErrorDetail(BaseModel):
    """Detail of a single validation failure."""

    field: str = Field(..., description="Field that failed validation")
    value: Any = Field(..., description="Invalid value received")
    reason: str = Field(..., description="Failure reason")
    message: str = Field(..., description="Explanation")


class ErrorResponse(BaseModel):
    """Structured error payload of the API."""

    error_type: ErrorType = Field(..., description="Error type")
    message: str = Field(..., description="Main error message")
    error_id: Optional[str] = Field(default=None, description="Tracking id")

    details: Optional[List[ErrorDetail]] = Field(
        default=None, description="Validation details"
    )
    context: Optional[Dict[str, Any]] = Field(default=None, description="Extra context")
    suggestions: Optional[List[str]] = Field(default=None, description="Resolution hints")
    code: Optional[str] = Field(default=None, description="Error code")


# ============================================================================
# PART 3: HELPERS (bridge between exceptions and responses)
# ============================================================================


def validation_error(
    field: str, value: Any, reason: str, message: Optional[str] = None
) -> ErrorResponse:
    """Validation error with field details."""
    return ErrorResponse(
        error_type=ErrorType.VALIDATION,
        message=message or f"Validation failed for field '{field}'",
        details=[
            ErrorDetail(
                field=field,
                value=value,
                reason=reason,
                message=message or f"Invalid value for {field}: {reason}",
            )
        ],
        code="validation_error",
    )


def rate_limit_error(identity: str, window_seconds: float) -> ErrorResponse:
    """Local admission control refused the request."""
    return ErrorResponse(
        error_type=ErrorType.RATE_LIMIT,
        message="Too many requests. Please wait a moment before trying again.",
        context={"identity": identity, "window_seconds": window_seconds},
        suggestions=[f"Retry after up to {int(window_seconds)} seconds"],
        code="rate_limited",
    )


def external_service_error(
    service: str, message: Optional[str] = None, reason: Optional[str] = None
) -> ErrorResponse:
    """External provider unavailable."""
    context: Dict[str, Any] = {"service": service}
    if reason:
        context["reason"] = reason

    return ErrorResponse(
        error_type=ErrorType.EXTERNAL_SERVICE,
        message=message or f"External service '{service}' is unavailable",
        context=context,
        suggestions=[
            f"Check that {service} is reachable",
            "Verify the TALENTRANK_API_TOKEN configuration",
        ],
        code="external_service_error",
    )


def internal_error(
    message: str = "An internal error occurred",
    error_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> ErrorResponse:
    """Unexpected server-side failure."""
    return ErrorResponse(
        error_type=ErrorType.INTERNAL,
        message=message,
        error_id=error_id or generate_id(),
        context=context,
        suggestions=["If the error persists, check the logs"],
        code="internal_server_error",
    )


def from_exception(exc: TalentRankError) -> ErrorResponse:
    """Convert a TalentRankError into an API ErrorResponse."""
    error_type_map = {
        "ValidationError": ErrorType.VALIDATION,
        "ConfigurationError": ErrorType.CONFIGURATION,
        "AuthenticationError": ErrorType.AUTHENTICATION,
        "RateLimitedError": ErrorType.RATE_LIMIT,
        "TransientProviderError": ErrorType.EXTERNAL_SERVICE,
        "MalformedRequestError": ErrorType.EXTERNAL_SERVICE,
        "InvalidResponseError": ErrorType.EXTERNAL_SERVICE,
        "ProviderUnavailableError": ErrorType.EXTERNAL_SERVICE,
        "ProviderError": ErrorType.EXTERNAL_SERVICE,
    }

    return ErrorResponse(
        error_type=error_type_map.get(exc.code, ErrorType.INTERNAL),
        message=exc.message,
        error_id=exc.id,
        context=exc.context,
        suggestions=exc.suggestions or None,
        code=exc.code,
    )


__all__ = [
    # Python exceptions
    "TalentRankError",
    "ConfigurationError",
    "ValidationError",
    "DimensionMismatchError",
    "ProviderError",
    "RateLimitedError",
    "TransientProviderError",
    "AuthenticationError",
    "MalformedRequestError",
    "InvalidResponseError",
    "ProviderUnavailableError",
    "error_from_status",
    # Response models
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse",
    # Helpers
    "validation_error",
    "rate_limit_error",
    "external_service_error",
    "internal_error",
    "from_exception",
]
