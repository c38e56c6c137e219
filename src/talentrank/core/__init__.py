"""
TalentRank Core module.

Exports the fundamental system components.
"""

# Configuration
from talentrank.core.secure_config import Settings, ConfigValidator

# Exceptions and errors
from talentrank.core.exceptions import (
    # Python exceptions
    TalentRankError,
    ConfigurationError,
    ValidationError,
    DimensionMismatchError,
    ProviderError,
    RateLimitedError,
    TransientProviderError,
    AuthenticationError,
    MalformedRequestError,
    InvalidResponseError,
    ProviderUnavailableError,
    error_from_status,
    # HTTP response models
    ErrorType,
    ErrorDetail,
    ErrorResponse,
    # Helper functions
    validation_error,
    rate_limit_error,
    internal_error,
    external_service_error,
    from_exception,
)

# Logging
from talentrank.core.logging import (
    AsyncLogger,
    SensitiveDataMasker,
    PerformanceLogger,
    logger,  # Pre-configured global logger
    perf_logger,
)

# Shared state primitives
from talentrank.core.cache import BoundedCache, CacheEntry, CacheStats, estimate_size
from talentrank.core.rate_limiter import SlidingWindowRateLimiter

# Provider
from talentrank.core.models_api import ModelsApiClient

# Tracing and metrics
from talentrank.core.tracing import tracer, LocalTracer, MetricsCollector

# ID generator
from talentrank.core.id_generator import IDGenerator, generate_id, is_valid_id


# Public exports list
__all__ = [
    # Configuration
    "Settings",
    "ConfigValidator",
    # Exceptions
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
    # HTTP error models
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse",
    # Error helper functions
    "validation_error",
    "rate_limit_error",
    "internal_error",
    "external_service_error",
    "from_exception",
    # Logging
    "AsyncLogger",
    "SensitiveDataMasker",
    "PerformanceLogger",
    "logger",
    "perf_logger",
    # Shared state
    "BoundedCache",
    "CacheEntry",
    "CacheStats",
    "estimate_size",
    "SlidingWindowRateLimiter",
    # Provider
    "ModelsApiClient",
    # Tracing
    "tracer",
    "LocalTracer",
    "MetricsCollector",
    # ID generator
    "IDGenerator",
    "generate_id",
    "is_valid_id",
]
