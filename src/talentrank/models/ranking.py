"""
Ranking request and result models.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from talentrank.models.base import FrozenModel, TalentRankBaseModel


class RankingMode(str, Enum):
    """
    How a ranking was computed.

    Scores are not comparable across modes.
    """

    HYBRID = "hybrid"
    LEXICAL = "lexical"


class RankingQuery(FrozenModel):
    """Ephemeral ranking request, never persisted."""

    scope_key: str = Field(..., min_length=1)
    raw_text: str = Field(..., description="Free-text job query")
    requested_count: Optional[int] = Field(
        None, description="Explicit result count hint, overrides the count in raw_text"
    )


class SimilarityResult(FrozenModel):
    """
    Score of one document against one query.

    vector_score is None in lexical mode and for documents scored
    lexical-only inside a hybrid ranking.
    """

    document_id: str
    score: float = Field(..., ge=0.0, le=1.0)
    vector_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    lexical_score: Optional[float] = Field(None, ge=0.0, le=1.0)


class RankingResponse(TalentRankBaseModel):
    """Caller-facing ranking answer."""

    mode: RankingMode
    results: List[SimilarityResult] = Field(default_factory=list)
    requested_count: int
    degraded_reason: Optional[str] = Field(
        None, description="Why the hybrid mode could not be used"
    )

    @property
    def is_degraded(self) -> bool:
        """True when fallback ranking was used (reduced confidence)."""
        return self.mode == RankingMode.LEXICAL

    @property
    def is_empty(self) -> bool:
        return not self.results


class ResumeMatch(FrozenModel):
    """
    A ranked document joined with what the chat layer needs to show it.
    """

    document_id: str
    filename: str
    similarity: float = Field(..., ge=0.0, le=1.0)
    content: Optional[str] = None

    @property
    def percent(self) -> int:
        return round(self.similarity * 100)
