"""
Embedding provider adapter.

Turns raw text into an EmbeddingVector through the external provider,
layering cache, health gate, admission control and retry in front of the
network call. Never raises for provider trouble: callers get an
EmbeddingResult with an UnavailableReason instead.
"""

import asyncio
import hashlib
from typing import Callable, Dict, List, Optional, Protocol

from talentrank.core.cache import BoundedCache
from talentrank.core.logging import logger
from talentrank.core.rate_limiter import SlidingWindowRateLimiter
from talentrank.core.tracing import MetricsCollector, tracer
from talentrank.core.utils.retry import RETRY_CONFIGS, RetryConfig, RetryController
from talentrank.embeddings.health import ProviderHealth, ProviderHealthSnapshot
from talentrank.embeddings.types import EmbeddingResult, EmbeddingVector, UnavailableReason

DEFAULT_SCOPE = "global"


class EmbeddingClient(Protocol):
    """What the adapter needs from the transport (ModelsApiClient in production)."""

    async def embed(self, text: str, model: str) -> List[float]: ...

    async def check_health(self) -> bool: ...


def normalize_text(text: str, max_chars: int) -> str:
    """Collapse whitespace and cut to the provider's maximum input length."""
    if not text:
        return ""
    return " ".join(text.split())[:max_chars].strip()


class EmbeddingProviderAdapter:
    """
    Flow of ``embed``:

    1. Normalize and truncate; empty input is unavailable, not an error
    2. Cache lookup keyed by text hash, model, dimensions and scope
    3. Join an identical request already in flight
    4. Health gate: skip the call while a failure mark is fresh
    5. Admission control per scope
    6. Provider call through the RetryController
    7. Cache the vector and mark the provider healthy, or mark it
       unhealthy on terminal failure

    The provider call runs as its own task, so a caller that stops waiting
    does not stop the request from completing and filling the cache.
    """

    def __init__(
        self,
        client: EmbeddingClient,
        cache: BoundedCache[EmbeddingVector],
        retry_controller: RetryController,
        health: ProviderHealth,
        model: str,
        dimensions: int,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        max_input_chars: int = 8000,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.client = client
        self.cache = cache
        self.retry_controller = retry_controller
        self.health = health
        self.model = model
        self.dimensions = dimensions
        self.rate_limiter = rate_limiter
        self.max_input_chars = max_input_chars
        self.retry_config = retry_config or RETRY_CONFIGS["embedding"]
        self.metrics = MetricsCollector("embeddings")
        self._inflight: Dict[str, "asyncio.Task[EmbeddingResult]"] = {}

        logger.info(
            "EmbeddingProviderAdapter initialized",
            model=model,
            dimensions=dimensions,
            max_input_chars=max_input_chars,
        )

    @classmethod
    def from_settings(
        cls,
        settings,
        client: EmbeddingClient,
        retry_controller: Optional[RetryController] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> "EmbeddingProviderAdapter":
        """Wire fresh cache, limiter and health tracker from configuration."""
        cache_cfg = settings.get("cache.embeddings")
        limit_cfg = settings.get("rate_limits.ai_requests")
        return cls(
            client=client,
            cache=BoundedCache(
                max_entries=cache_cfg["max_entries"],
                max_size_bytes=cache_cfg["max_size_bytes"],
                ttl_seconds=cache_cfg["ttl_seconds"],
                clock=clock,
                name="embeddings",
            ),
            retry_controller=retry_controller or RetryController(),
            health=ProviderHealth(settings.get("provider.health_freshness_seconds"), clock=clock),
            model=settings.get("provider.embedding_model"),
            dimensions=settings.get("provider.embedding_dimensions"),
            rate_limiter=SlidingWindowRateLimiter(
                limit_cfg["max_requests"],
                limit_cfg["window_seconds"],
                clock=clock,
                name="embedding_requests",
            ),
            max_input_chars=settings.get("provider.max_input_chars"),
            retry_config=RetryConfig.from_dict(settings.get("retry.embedding")),
        )

    def cache_key(self, normalized_text: str, cache_scope: str = DEFAULT_SCOPE) -> str:
        """
        Key for a normalized text.

        Model and dimensions are part of the key so vectors of a previous
        model configuration are never served.
        """
        digest = hashlib.sha256(normalized_text.encode("utf-8")).hexdigest()
        return f"{cache_scope}:{self.model}:{self.dimensions}:{digest}"

    async def embed(self, text: str, cache_scope: str = DEFAULT_SCOPE) -> EmbeddingResult:
        """
        Embedding for ``text``, or the reason there is none.
        """
        normalized = normalize_text(text, self.max_input_chars)
        if not normalized:
            self.metrics.increment("unavailable.empty_input")
            return EmbeddingResult.unavailable(UnavailableReason.EMPTY_INPUT)

        key = self.cache_key(normalized, cache_scope)
        cached = self.cache.get(key)
        if cached is not None:
            self.metrics.increment("cache.hits")
            return EmbeddingResult.of(cached, from_cache=True)
        self.metrics.increment("cache.misses")

        task = self._inflight.get(key)
        if task is None:
            if self.health.is_known_unhealthy():
                self.metrics.increment("unavailable.provider_unhealthy")
                logger.debug("Skipping embedding call, provider known unhealthy")
                return EmbeddingResult.unavailable(UnavailableReason.PROVIDER_UNHEALTHY)

            if self.rate_limiter is not None and not self.rate_limiter.try_acquire(cache_scope):
                self.metrics.increment("unavailable.rate_limited")
                logger.info("Embedding request refused by rate limiter", scope=cache_scope)
                return EmbeddingResult.unavailable(UnavailableReason.RATE_LIMITED)

            task = asyncio.ensure_future(self._fetch(key, normalized))
            self._inflight[key] = task
            task.add_done_callback(lambda _t, k=key: self._inflight.pop(k, None))
        else:
            self.metrics.increment("inflight.joined")

        return await asyncio.shield(task)

    async def _fetch(self, key: str, normalized: str) -> EmbeddingResult:
        self.metrics.increment("provider.calls")
        try:
            with tracer.span("provider.embed", {"model": self.model, "chars": len(normalized)}):
                raw = await self.retry_controller.execute_with_retry(
                    lambda: self.client.embed(normalized, self.model),
                    operation_id=f"embedding:{key}",
                    config=self.retry_config,
                )
            vector = EmbeddingVector(raw)
        except Exception as e:
            self.metrics.increment("provider.failures")
            self.health.mark_unhealthy(f"{type(e).__name__}: {e}")
            logger.error("Embedding failed", model=self.model, error=str(e))
            return EmbeddingResult.unavailable(UnavailableReason.PROVIDER_FAILED)

        if vector.dimension != self.dimensions:
            self.metrics.increment("dimension_mismatches")
            logger.warning(
                "Embedding dimension differs from configuration, keeping it",
                expected=self.dimensions,
                actual=vector.dimension,
                model=self.model,
            )

        self.cache.set(key, vector)
        self.health.mark_healthy()
        return EmbeddingResult.of(vector)

    async def check_health(self) -> ProviderHealthSnapshot:
        """Run an active probe and record its outcome."""
        try:
            healthy = await self.client.check_health()
        except Exception as e:
            logger.warning("Provider health probe raised", error=str(e))
            healthy = False

        if healthy:
            self.health.mark_healthy()
        else:
            self.health.mark_unhealthy("health probe failed")
        return self.health.snapshot()
