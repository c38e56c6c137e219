"""
Ranking module for TalentRank.

Hybrid vector + lexical ranking of candidate documents.
"""

from talentrank.ranking.lexical import LexicalScorer, STOPWORDS, tokenize
from talentrank.ranking.similarity import cosine_similarity, normalized_cosine
from talentrank.ranking.query import (
    CountPolicy,
    DEFAULT_COUNT,
    MIN_COUNT,
    MAX_COUNT,
    apply_count_policy,
    extract_requested_count,
    resolve_requested_count,
)
from talentrank.ranking.hybrid import HybridRankingEngine, MissingEmbeddingPolicy, QueryEmbedder

__all__ = [
    "LexicalScorer",
    "STOPWORDS",
    "tokenize",
    "cosine_similarity",
    "normalized_cosine",
    "CountPolicy",
    "DEFAULT_COUNT",
    "MIN_COUNT",
    "MAX_COUNT",
    "apply_count_policy",
    "extract_requested_count",
    "resolve_requested_count",
    "HybridRankingEngine",
    "MissingEmbeddingPolicy",
    "QueryEmbedder",
]
