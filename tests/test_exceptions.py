"""
Tests for the exception hierarchy and API error payloads.
"""

import pytest

from talentrank.core.id_generator import is_valid_id
from talentrank.core.exceptions import (
    AuthenticationError,
    DimensionMismatchError,
    ErrorType,
    InvalidResponseError,
    MalformedRequestError,
    ProviderUnavailableError,
    RateLimitedError,
    TalentRankError,
    TransientProviderError,
    ValidationError,
    error_from_status,
    external_service_error,
    from_exception,
    rate_limit_error,
    validation_error,
)


@pytest.mark.parametrize(
    "status, expected",
    [
        (429, RateLimitedError),
        (500, TransientProviderError),
        (503, TransientProviderError),
        (401, AuthenticationError),
        (403, AuthenticationError),
        (400, MalformedRequestError),
        (404, MalformedRequestError),
        (302, InvalidResponseError),
    ],
)
def test_error_from_status(status, expected):
    error = error_from_status(status, "body")
    assert type(error) is expected
    assert error.status == status


def test_retryability_by_class():
    assert error_from_status(429).is_retryable() is True
    assert error_from_status(502).is_retryable() is True
    assert error_from_status(401).is_retryable() is False
    assert error_from_status(422).is_retryable() is False


def test_rate_limited_keeps_retry_after():
    error = error_from_status(429, retry_after=3.0)
    assert error.retry_after == 3.0
    assert error.context["retry_after"] == 3.0


def test_long_body_is_truncated_in_message():
    error = error_from_status(500, "x" * 1000)
    assert len(error.message) < 300


def test_to_dict():
    error = ValidationError("bad scope", context={"field": "scope_key"})
    error.add_suggestion("Send a non-empty scope_key")
    error.add_suggestion("Send a non-empty scope_key")

    data = error.to_dict()

    assert data["code"] == "ValidationError"
    assert data["message"] == "bad scope"
    assert data["context"] == {"field": "scope_key"}
    assert data["suggestions"] == ["Send a non-empty scope_key"]
    assert is_valid_id(data["error_id"])


def test_cause_is_serialized():
    error = TalentRankError("wrapped", cause=KeyError("k"))
    assert error.to_dict()["cause"]["type"] == "KeyError"


def test_dimension_mismatch_context():
    error = DimensionMismatchError(3072, 1536)
    assert error.context == {"left_dimensions": 3072, "right_dimensions": 1536}
    assert error.is_retryable() is False


def test_from_exception_maps_types():
    assert from_exception(ValidationError("x")).error_type == ErrorType.VALIDATION
    assert from_exception(AuthenticationError("x")).error_type == ErrorType.AUTHENTICATION
    assert from_exception(TransientProviderError("x")).error_type == ErrorType.EXTERNAL_SERVICE
    assert from_exception(ProviderUnavailableError("x")).error_type == ErrorType.EXTERNAL_SERVICE
    assert from_exception(TalentRankError("x")).error_type == ErrorType.INTERNAL


def test_response_helpers():
    response = validation_error("query", "", "empty")
    assert response.details[0].field == "query"
    assert response.error_type == ErrorType.VALIDATION

    limited = rate_limit_error("user-1", 60)
    assert limited.context == {"identity": "user-1", "window_seconds": 60}

    unavailable = external_service_error("embeddings", reason="provider_failed")
    assert unavailable.error_type == ErrorType.EXTERNAL_SERVICE
    assert unavailable.context == {"service": "embeddings", "reason": "provider_failed"}


def test_provider_unavailable_is_not_retryable():
    error = ProviderUnavailableError("down", context={"reason": "provider_unhealthy"})
    assert error.is_retryable() is False
    assert from_exception(error).context == {"reason": "provider_unhealthy"}
