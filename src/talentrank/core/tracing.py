"""
Local observability.

Counters and spans for debugging the ranking pipeline, without any
external telemetry export.
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Any, Optional, Iterator

from talentrank.core.logging import AsyncLogger
from talentrank.core.id_generator import generate_id


class LocalTracer:
    """
    Simple local tracing.

    LocalTracer: individual operations with duration and attributes,
    correlated in the log through a span_id.
    MetricsCollector: aggregated counters and gauges with no per-operation context.
    """

    def __init__(self, service_name: str = "talentrank") -> None:
        self.service_name = service_name
        self.logger = AsyncLogger("tracing")

    @contextmanager
    def span(self, name: str, attributes: Optional[Dict[str, Any]] = None) -> Iterator[str]:
        """
        Measure an operation.

        Usage:
        ```
        with tracer.span("provider.embed", {"model": model}):
            vector = await client.embed(text, model)
        ```
        """
        span_id = generate_id()
        start = time.perf_counter()

        try:
            yield span_id
        finally:
            duration = time.perf_counter() - start
            self.logger.debug(
                f"Span completed: {name}",
                span_id=span_id,
                service=self.service_name,
                duration_ms=duration * 1000,
                **(attributes or {}),
            )


class MetricsCollector:
    """
    Local metrics collector.

    Thread-safe; every component owns its own instance so unrelated
    components never contend on the same lock.
    """

    def __init__(self, namespace: str = "") -> None:
        self.namespace = namespace
        self.metrics: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _name(self, name: str) -> str:
        return f"{self.namespace}.{name}" if self.namespace else name

    def increment(self, name: str, value: float = 1.0) -> None:
        """Increment a counter."""
        key = self._name(name)
        with self._lock:
            self.metrics[key] = self.metrics.get(key, 0) + value

    def gauge(self, name: str, value: float) -> None:
        """Set a current value."""
        with self._lock:
            self.metrics[self._name(name)] = value

    def get(self, name: str, default: float = 0.0) -> float:
        with self._lock:
            return self.metrics.get(self._name(name), default)

    def get_metrics(self) -> Dict[str, float]:
        """Snapshot of all metrics."""
        with self._lock:
            return self.metrics.copy()


tracer = LocalTracer()
