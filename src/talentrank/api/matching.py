"""
Matching, embedding and chat endpoints.
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from talentrank.api.container import ServiceContainer
from talentrank.api.dependencies import admit, get_container
from talentrank.core.exceptions import ProviderUnavailableError, validation_error
from talentrank.core.logging import logger
from talentrank.embeddings.types import UnavailableReason
from talentrank.models.chat import ChatMessage
from talentrank.models.ranking import RankingMode, ResumeMatch, SimilarityResult

router = APIRouter()


class MatchRequest(BaseModel):
    scope_key: str = Field(..., min_length=1, description="Owner of the documents to rank")
    query: str = Field(..., min_length=1, description="Job description or search text")
    limit: Optional[int] = Field(None, description="Number of results, overrides the query text")


class MatchResponse(BaseModel):
    mode: RankingMode
    is_degraded: bool
    degraded_reason: Optional[str] = None
    requested_count: int
    results: List[SimilarityResult]
    matches: List[ResumeMatch]


class EmbeddingRequest(BaseModel):
    text: str = Field(..., min_length=1)
    scope_key: str = Field("global", min_length=1)


class EmbeddingResponse(BaseModel):
    embedding: List[float]
    dimensions: int
    cached: bool


class ChatRequest(BaseModel):
    scope_key: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    history: List[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    reply: str
    show_matches: bool
    mode: Optional[RankingMode] = None
    is_degraded: bool = False
    matches: List[ResumeMatch] = Field(default_factory=list)


@router.post("/resumes/match", response_model=MatchResponse)
async def match_resumes(
    request: MatchRequest, container: ServiceContainer = Depends(get_container)
) -> Union[MatchResponse, JSONResponse]:
    """Rank the scope's resumes against a job description."""
    refused = admit(container, request.scope_key)
    if refused is not None:
        return refused

    response, matches = await container.matching.find_matches(
        request.scope_key, request.query, request.limit
    )
    return MatchResponse(
        mode=response.mode,
        is_degraded=response.is_degraded,
        degraded_reason=response.degraded_reason,
        requested_count=response.requested_count,
        results=response.results,
        matches=matches,
    )


@router.post("/embeddings", response_model=EmbeddingResponse)
async def create_embedding(
    request: EmbeddingRequest, container: ServiceContainer = Depends(get_container)
) -> Union[EmbeddingResponse, JSONResponse]:
    """Embedding of a text, as used for document ingestion."""
    refused = admit(container, request.scope_key)
    if refused is not None:
        return refused

    result = await container.embedder.embed(request.text, request.scope_key)
    if result.vector is None:
        reason = result.reason.value if result.reason else "unavailable"
        logger.info("Embedding request not served", reason=reason, scope_key=request.scope_key)
        if result.reason == UnavailableReason.EMPTY_INPUT:
            error = validation_error("text", request.text, reason, "Text is empty after normalization")
            return JSONResponse(status_code=422, content=error.model_dump(mode="json", exclude_none=True))

        unavailable = ProviderUnavailableError(
            "Embedding provider unavailable",
            context={"service": "embeddings", "reason": reason},
        )
        unavailable.add_suggestion("Retry later or check GET /api/health?probe=true")
        raise unavailable

    return EmbeddingResponse(
        embedding=result.vector.list,
        dimensions=result.vector.dimension,
        cached=result.from_cache,
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest, container: ServiceContainer = Depends(get_container)
) -> Union[ChatResponse, JSONResponse]:
    """
    Assistant reply.

    Job descriptions are ranked first and the reply explains the matches;
    anything else is answered from the conversation history.
    """
    refused = admit(container, request.scope_key)
    if refused is not None:
        return refused

    if not container.chat.should_show_matches(request.message):
        reply = await container.chat.respond(request.message, [], request.history)
        return ChatResponse(reply=reply, show_matches=False)

    ranking, matches = await container.matching.find_matches(request.scope_key, request.message)
    reply = await container.chat.respond(request.message, matches, request.history)
    return ChatResponse(
        reply=reply,
        show_matches=True,
        mode=ranking.mode,
        is_degraded=ranking.is_degraded,
        matches=matches,
    )
