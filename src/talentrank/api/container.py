"""
Explicit wiring of the services used by the HTTP layer.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from talentrank.core.logging import logger
from talentrank.core.models_api import ModelsApiClient
from talentrank.core.rate_limiter import SlidingWindowRateLimiter
from talentrank.core.secure_config import Settings
from talentrank.core.utils.retry import RetryController
from talentrank.embeddings.provider import EmbeddingProviderAdapter
from talentrank.ranking.hybrid import HybridRankingEngine
from talentrank.services.chat_service import ChatCompletionService
from talentrank.services.document_store import DocumentSource, InMemoryDocumentStore
from talentrank.services.matching_service import ResumeMatchingService


@dataclass
class ServiceContainer:
    """Every shared instance the API needs, built once per application."""

    settings: Settings
    client: Any
    embedder: EmbeddingProviderAdapter
    engine: HybridRankingEngine
    documents: DocumentSource
    matching: ResumeMatchingService
    chat: ChatCompletionService
    api_rate_limiter: SlidingWindowRateLimiter
    started_at: float = field(default_factory=time.time)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        documents: Optional[DocumentSource] = None,
        client: Any = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Optional[Callable[[], float]] = None,
    ) -> "ServiceContainer":
        """
        Build fresh instances from configuration.

        Args:
            settings: Loaded configuration
            documents: Document source, an empty in-memory store if omitted
            client: Provider client, a ModelsApiClient if omitted
            sleep: Backoff sleep for the retry controller
            clock: Clock for caches, limiters and health tracking
        """
        if client is None:
            client = ModelsApiClient(
                base_url=settings.get("provider.base_url"),
                token=settings.get("provider.token"),
                timeout=settings.get("provider.request_timeout"),
            )
        documents = documents if documents is not None else InMemoryDocumentStore()

        # Embedding and chat retries never share operation ids, one controller is enough
        retry_controller = RetryController(sleep=sleep)
        embedder = EmbeddingProviderAdapter.from_settings(
            settings, client, retry_controller=retry_controller, clock=clock
        )
        engine = HybridRankingEngine.from_settings(settings, embedder)
        api_limits = settings.get("rate_limits.api_requests")

        logger.info("Service container built")
        return cls(
            settings=settings,
            client=client,
            embedder=embedder,
            engine=engine,
            documents=documents,
            matching=ResumeMatchingService(engine, documents),
            chat=ChatCompletionService.from_settings(settings, client, retry_controller),
            api_rate_limiter=SlidingWindowRateLimiter(
                api_limits["max_requests"],
                api_limits["window_seconds"],
                clock=clock,
                name="api_requests",
            ),
        )

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()
