"""
Resume matching service - caller-facing ranking interface.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from talentrank.core.exceptions import ValidationError
from talentrank.core.logging import logger
from talentrank.models.document import Document
from talentrank.models.ranking import (
    RankingMode,
    RankingQuery,
    RankingResponse,
    ResumeMatch,
)
from talentrank.ranking.hybrid import HybridRankingEngine
from talentrank.services.document_store import DocumentSource


class ResumeMatchingService:
    """
    Ranks the documents of a scope against a job query.

    Storage failures are logged and answered with an empty degraded
    response: this service never raises for them.
    """

    def __init__(self, engine: HybridRankingEngine, documents: DocumentSource):
        self.engine = engine
        self.documents = documents

    def _build_query(
        self, scope_key: str, query_text: str, requested_count_hint: Optional[int]
    ) -> RankingQuery:
        try:
            return RankingQuery(
                scope_key=scope_key,
                raw_text=query_text,
                requested_count=requested_count_hint,
            )
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "query"
            raise ValidationError(
                f"Invalid ranking request: {first.get('msg')}",
                context={"field": field, "reason": first.get("type")},
                cause=e,
            )

    async def _rank(
        self, scope_key: str, query_text: str, requested_count_hint: Optional[int]
    ) -> Tuple[RankingResponse, Sequence[Document]]:
        query = self._build_query(scope_key, query_text, requested_count_hint)

        try:
            documents = await self.documents.list_documents(scope_key)
        except Exception as e:
            logger.error("Could not load documents", scope_key=scope_key, error=str(e))
            response = RankingResponse(
                mode=RankingMode.LEXICAL,
                requested_count=self.engine.requested_count(query),
                degraded_reason="storage_unavailable",
            )
            return response, []

        response = await self.engine.rank(query, documents)
        logger.info(
            "Ranking completed",
            scope_key=scope_key,
            mode=response.mode,
            results=len(response.results),
            requested_count=response.requested_count,
            degraded_reason=response.degraded_reason,
        )
        return response, documents

    async def rank(
        self, scope_key: str, query_text: str, requested_count_hint: Optional[int] = None
    ) -> RankingResponse:
        """
        Rank the scope's documents against ``query_text``.

        Raises:
            ValidationError: If scope_key is blank
        """
        response, _ = await self._rank(scope_key, query_text, requested_count_hint)
        return response

    async def find_matches(
        self, scope_key: str, query_text: str, requested_count_hint: Optional[int] = None
    ) -> Tuple[RankingResponse, List[ResumeMatch]]:
        """Rank and join each result with its document for display."""
        response, documents = await self._rank(scope_key, query_text, requested_count_hint)
        by_id: Dict[str, Document] = {doc.id: doc for doc in documents}
        matches = [
            ResumeMatch(
                document_id=result.document_id,
                filename=by_id[result.document_id].display_name,
                similarity=result.score,
                content=by_id[result.document_id].text,
            )
            for result in response.results
            if result.document_id in by_id
        ]
        return response, matches
