"""
Hybrid ranking combining vector similarity (70%) and lexical overlap (30%).

When no query embedding can be obtained the whole call degrades to
lexical-only ranking, flagged through RankingResponse.mode so callers can
tell reduced confidence apart from "no results".
"""

from enum import Enum
from typing import Iterable, List, Optional, Protocol, Sequence

from talentrank.core.exceptions import DimensionMismatchError
from talentrank.core.logging import logger, perf_logger
from talentrank.core.tracing import MetricsCollector
from talentrank.embeddings.types import EmbeddingResult, EmbeddingVector
from talentrank.models.document import Document
from talentrank.models.ranking import (
    RankingMode,
    RankingQuery,
    RankingResponse,
    SimilarityResult,
)
from talentrank.ranking.lexical import LexicalScorer
from talentrank.ranking.query import (
    DEFAULT_COUNT,
    MAX_COUNT,
    MIN_COUNT,
    CountPolicy,
    resolve_requested_count,
)
from talentrank.ranking.similarity import normalized_cosine


class MissingEmbeddingPolicy(str, Enum):
    """Treatment of documents without an embedding in a hybrid ranking."""

    EXCLUDE = "exclude"
    LEXICAL_ONLY = "lexical_only"


class QueryEmbedder(Protocol):
    async def embed(self, text: str, cache_scope: str = ...) -> EmbeddingResult: ...


class HybridRankingEngine:
    """
    Ranks candidate documents against a free-text job query.

    Stateless between calls: identical inputs give identical ordered
    results. ``rank`` never raises.
    """

    def __init__(
        self,
        embedder: QueryEmbedder,
        lexical_scorer: Optional[LexicalScorer] = None,
        vector_weight: float = 0.7,
        lexical_weight: float = 0.3,
        relevance_floor: float = 0.01,
        count_policy: CountPolicy = CountPolicy.DEFAULT,
        missing_embedding_policy: MissingEmbeddingPolicy = MissingEmbeddingPolicy.EXCLUDE,
        default_count: int = DEFAULT_COUNT,
        min_count: int = MIN_COUNT,
        max_count: int = MAX_COUNT,
    ):
        """
        Initialize the engine.

        Args:
            embedder: Produces the query embedding (EmbeddingProviderAdapter)
            lexical_scorer: Keyword scorer, a default one is built if omitted
            vector_weight: Weight of the normalized cosine similarity
            lexical_weight: Weight of the lexical score
            relevance_floor: Minimum lexical score kept in lexical-only scoring
            count_policy: Treatment of out-of-range requested counts
            missing_embedding_policy: Treatment of documents without embedding
        """
        total_weight = vector_weight + lexical_weight
        if vector_weight < 0 or lexical_weight < 0 or total_weight <= 0:
            raise ValueError("Ranking weights must be non-negative and not both zero")

        self.embedder = embedder
        self.lexical_scorer = lexical_scorer or LexicalScorer()
        self.vector_weight = vector_weight
        self.lexical_weight = lexical_weight

        # Ensure weights sum to 1.0
        if abs(total_weight - 1.0) > 0.001:
            logger.warning("Weights don't sum to 1.0, normalizing", total_weight=total_weight)
            self.vector_weight = vector_weight / total_weight
            self.lexical_weight = lexical_weight / total_weight

        self.relevance_floor = relevance_floor
        self.count_policy = CountPolicy(count_policy)
        self.missing_embedding_policy = MissingEmbeddingPolicy(missing_embedding_policy)
        self.default_count = default_count
        self.min_count = min_count
        self.max_count = max_count
        self.metrics = MetricsCollector("ranking")

        logger.info(
            "HybridRankingEngine initialized",
            vector_weight=self.vector_weight,
            lexical_weight=self.lexical_weight,
            count_policy=self.count_policy.value,
            missing_embedding_policy=self.missing_embedding_policy.value,
        )

    @classmethod
    def from_settings(cls, settings, embedder: QueryEmbedder) -> "HybridRankingEngine":
        matching = settings.get("matching")
        return cls(
            embedder=embedder,
            lexical_scorer=LexicalScorer(min_token_length=matching["min_token_length"]),
            vector_weight=matching["vector_weight"],
            lexical_weight=matching["lexical_weight"],
            relevance_floor=matching["relevance_floor"],
            count_policy=CountPolicy(matching["count_policy"]),
            missing_embedding_policy=MissingEmbeddingPolicy(matching["missing_embedding_policy"]),
            default_count=matching["default_count"],
            min_count=matching["min_count"],
            max_count=matching["max_count"],
        )

    def requested_count(self, query: RankingQuery) -> int:
        return resolve_requested_count(
            query.requested_count,
            query.raw_text,
            self.count_policy,
            self.default_count,
            self.min_count,
            self.max_count,
        )

    async def rank(self, query: RankingQuery, documents: Iterable[Document]) -> RankingResponse:
        """
        Rank ``documents`` against ``query``.

        Documents from another scope are ignored. Provider trouble and
        unexpected errors degrade to lexical mode instead of raising.
        """
        requested = self.requested_count(query)
        try:
            in_scope = [doc for doc in documents if doc.scope_key == query.scope_key]
        except Exception as e:
            logger.error("Could not read candidate documents", error=str(e))
            return RankingResponse(
                mode=RankingMode.LEXICAL,
                requested_count=requested,
                degraded_reason="documents_unavailable",
            )

        logger.debug(
            "Ranking documents",
            query=query.raw_text[:50],
            scope_key=query.scope_key,
            documents=len(in_scope),
            requested_count=requested,
        )

        try:
            with perf_logger.measure("rank", scope_key=query.scope_key, documents=len(in_scope)):
                embedding = await self.embedder.embed(query.raw_text, query.scope_key)
                if not embedding.available:
                    reason = embedding.reason.value if embedding.reason else "unavailable"
                    logger.info("Query embedding unavailable, using lexical ranking", reason=reason)
                    return self._lexical_response(query.raw_text, in_scope, requested, reason)

                assert embedding.vector is not None
                results = self.rank_hybrid(embedding.vector, query.raw_text, in_scope)
                self.metrics.increment("mode.hybrid")
                return RankingResponse(
                    mode=RankingMode.HYBRID,
                    results=results[:requested],
                    requested_count=requested,
                )
        except Exception as e:
            logger.error("Hybrid ranking failed, using lexical ranking", error=str(e))
            self.metrics.increment("errors")
            return self._lexical_response(query.raw_text, in_scope, requested, "ranking_error")

    def _lexical_response(
        self, query_text: str, documents: Sequence[Document], requested: int, reason: str
    ) -> RankingResponse:
        self.metrics.increment("mode.lexical")
        results = self.rank_lexical(query_text, documents)
        return RankingResponse(
            mode=RankingMode.LEXICAL,
            results=results[:requested],
            requested_count=requested,
            degraded_reason=reason,
        )

    def rank_hybrid(
        self, query_vector: EmbeddingVector, query_text: str, documents: Sequence[Document]
    ) -> List[SimilarityResult]:
        """Score every document and sort descending, ties kept in input order."""
        results: List[SimilarityResult] = []
        missing = 0

        for doc in documents:
            document_vector = self._document_vector(doc)
            lexical_score = self.lexical_scorer.score(query_text, doc.text)

            if document_vector is None:
                missing += 1
                if (
                    self.missing_embedding_policy == MissingEmbeddingPolicy.LEXICAL_ONLY
                    and lexical_score > self.relevance_floor
                ):
                    results.append(
                        SimilarityResult(
                            document_id=doc.id, score=lexical_score, lexical_score=lexical_score
                        )
                    )
                continue

            try:
                vector_score = normalized_cosine(query_vector, document_vector)
            except DimensionMismatchError as e:
                self.metrics.increment("dimension_mismatches")
                logger.warning(
                    "Dimension mismatch, vector score set to 0",
                    document_id=doc.id,
                    query_dimensions=e.left,
                    document_dimensions=e.right,
                )
                vector_score = 0.0

            score = self.vector_weight * vector_score + self.lexical_weight * lexical_score
            results.append(
                SimilarityResult(
                    document_id=doc.id,
                    score=min(1.0, max(0.0, score)),
                    vector_score=vector_score,
                    lexical_score=lexical_score,
                )
            )

        if missing:
            self.metrics.increment("missing_embeddings", missing)
            logger.debug(
                "Documents without embedding",
                count=missing,
                policy=self.missing_embedding_policy.value,
            )

        # sorted() is stable with reverse=True, equal scores keep input order
        return sorted(results, key=lambda r: r.score, reverse=True)

    def rank_lexical(self, query_text: str, documents: Sequence[Document]) -> List[SimilarityResult]:
        """Lexical-only ranking, dropping documents at or below the relevance floor."""
        results: List[SimilarityResult] = []
        for doc in documents:
            lexical_score = self.lexical_scorer.score(query_text, doc.text)
            if lexical_score > self.relevance_floor:
                results.append(
                    SimilarityResult(
                        document_id=doc.id, score=lexical_score, lexical_score=lexical_score
                    )
                )
        return sorted(results, key=lambda r: r.score, reverse=True)

    def _document_vector(self, doc: Document) -> Optional[EmbeddingVector]:
        if doc.embedding is None:
            return None
        try:
            return EmbeddingVector.from_any(doc.embedding)
        except ValueError as e:
            logger.warning("Unusable document embedding", document_id=doc.id, error=str(e))
            return None
