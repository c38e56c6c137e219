"""
Services module for TalentRank.

Business logic on top of the ranking engine. Every service receives its
collaborators explicitly; there are no module-level instances.
"""

from talentrank.services.document_store import (
    DocumentSource,
    InMemoryDocumentStore,
    coerce_document,
)
from talentrank.services.matching_service import ResumeMatchingService
from talentrank.services.chat_service import (
    ChatCompletionService,
    CompletionClient,
    fallback_summary,
)

__all__ = [
    "DocumentSource",
    "InMemoryDocumentStore",
    "coerce_document",
    "ResumeMatchingService",
    "ChatCompletionService",
    "CompletionClient",
    "fallback_summary",
]
