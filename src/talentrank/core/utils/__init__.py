"""
Core utilities module for TalentRank.
"""

# Datetime utilities
from .datetime_utils import (
    utc_now,
    utc_now_iso,
    ensure_utc,
    format_iso,
    set_mock_time,
    utc_now_testable,
    epoch_seconds,
)

# Retry utilities
from .retry import (
    RetryConfig,
    RetryState,
    RetryController,
    RETRY_CONFIGS,
    is_retryable_error,
    with_retry,
)

__all__ = [
    # Datetime utilities
    'utc_now',
    'utc_now_iso',
    'ensure_utc',
    'format_iso',
    'set_mock_time',
    'utc_now_testable',
    'epoch_seconds',
    # Retry utilities
    'RetryConfig',
    'RetryState',
    'RetryController',
    'RETRY_CONFIGS',
    'is_retryable_error',
    'with_retry',
]
