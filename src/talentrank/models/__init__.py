"""
TalentRank Models module.
Exports all main models for use in other modules.
"""

# Base
from .base import TalentRankBaseModel, FrozenModel

# Documents
from talentrank.models.document import Document

# Ranking
from talentrank.models.ranking import (
    RankingMode,
    RankingQuery,
    SimilarityResult,
    RankingResponse,
    ResumeMatch,
)

# Chat
from talentrank.models.chat import Role, Message, ChatMessage

__all__ = [
    # Base
    "TalentRankBaseModel",
    "FrozenModel",
    # Documents
    "Document",
    # Ranking
    "RankingMode",
    "RankingQuery",
    "SimilarityResult",
    "RankingResponse",
    "ResumeMatch",
    # Chat
    "Role",
    "Message",
    "ChatMessage",
]
