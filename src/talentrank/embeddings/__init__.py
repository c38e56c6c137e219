"""
Embeddings module for TalentRank.

Turns text into vectors through the hosted provider. There are no
module-level singletons: build an EmbeddingProviderAdapter (directly or
with ``EmbeddingProviderAdapter.from_settings``) and inject it.
"""

from talentrank.embeddings.types import EmbeddingVector, EmbeddingResult, UnavailableReason
from talentrank.embeddings.health import ProviderHealth, ProviderHealthSnapshot
from talentrank.embeddings.provider import (
    EmbeddingClient,
    EmbeddingProviderAdapter,
    normalize_text,
)

__all__ = [
    "EmbeddingVector",
    "EmbeddingResult",
    "UnavailableReason",
    "ProviderHealth",
    "ProviderHealthSnapshot",
    "EmbeddingClient",
    "EmbeddingProviderAdapter",
    "normalize_text",
]
