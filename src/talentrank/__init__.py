"""
TalentRank - job-to-candidate similarity ranking.

Hybrid vector + lexical ranking of candidate documents, wrapped in
caching, rate limiting and retry to tolerate a quota-limited hosted
embedding provider.
"""

from talentrank._version import __version__, __version_info__

# Core components
from talentrank.core import (
    logger,
    Settings,
    generate_id,
    TalentRankError,
    ValidationError,
    ConfigurationError,
    ProviderError,
    BoundedCache,
    SlidingWindowRateLimiter,
)
from talentrank.core.utils.retry import RetryConfig, RetryController

# Models
from talentrank.models import (
    Document,
    RankingMode,
    RankingQuery,
    RankingResponse,
    SimilarityResult,
    ResumeMatch,
    Role,
    ChatMessage,
)

# Embeddings
from talentrank.embeddings import EmbeddingProviderAdapter, EmbeddingResult, UnavailableReason

# Ranking
from talentrank.ranking import (
    HybridRankingEngine,
    LexicalScorer,
    CountPolicy,
    MissingEmbeddingPolicy,
    extract_requested_count,
)

# Services
from talentrank.services import (
    ResumeMatchingService,
    ChatCompletionService,
    InMemoryDocumentStore,
)


# Lazy import function for API
def get_app():
    """
    Build the TalentRank FastAPI application (lazy import).

    Importing the API only when needed keeps library users free of the
    web stack initialization logs.
    """
    from talentrank.api import create_app

    return create_app()


__all__ = [
    # Version info
    "__version__",
    "__version_info__",
    # Core
    "logger",
    "Settings",
    "generate_id",
    "TalentRankError",
    "ValidationError",
    "ConfigurationError",
    "ProviderError",
    "BoundedCache",
    "SlidingWindowRateLimiter",
    "RetryConfig",
    "RetryController",
    # Models
    "Document",
    "RankingMode",
    "RankingQuery",
    "RankingResponse",
    "SimilarityResult",
    "ResumeMatch",
    "Role",
    "ChatMessage",
    # Embeddings
    "EmbeddingProviderAdapter",
    "EmbeddingResult",
    "UnavailableReason",
    # Ranking
    "HybridRankingEngine",
    "LexicalScorer",
    "CountPolicy",
    "MissingEmbeddingPolicy",
    "extract_requested_count",
    # Services
    "ResumeMatchingService",
    "ChatCompletionService",
    "InMemoryDocumentStore",
    # API
    "get_app",
]
