"""
Provider availability tracking.
"""

import threading
from typing import Callable, Optional, TypedDict

from talentrank.core.logging import logger
from talentrank.core.utils.datetime_utils import epoch_seconds


class ProviderHealthSnapshot(TypedDict):
    status: str  # healthy | unhealthy | unknown
    checked_at: Optional[float]
    age_seconds: Optional[float]
    reason: Optional[str]
    consecutive_failures: int
    freshness_seconds: float


class ProviderHealth:
    """
    Last known health of the external provider.

    An unhealthy mark only gates calls while it is fresh: after
    ``freshness_seconds`` the provider gets another chance.
    """

    def __init__(
        self,
        freshness_seconds: float = 300,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.freshness_seconds = freshness_seconds
        self._clock = clock or epoch_seconds
        self._healthy: Optional[bool] = None
        self._checked_at: Optional[float] = None
        self._reason: Optional[str] = None
        self._consecutive_failures = 0
        self._lock = threading.Lock()

    def mark_healthy(self) -> None:
        with self._lock:
            recovered = self._healthy is False
            self._healthy = True
            self._checked_at = self._clock()
            self._reason = None
            self._consecutive_failures = 0
        if recovered:
            logger.info("Embedding provider recovered")

    def mark_unhealthy(self, reason: str) -> None:
        with self._lock:
            self._healthy = False
            self._checked_at = self._clock()
            self._reason = reason
            self._consecutive_failures += 1
            failures = self._consecutive_failures
        logger.warning("Embedding provider marked unhealthy", reason=reason, failures=failures)

    def is_known_unhealthy(self) -> bool:
        """True if a failure was recorded within the freshness window."""
        now = self._clock()
        with self._lock:
            if self._healthy is not False or self._checked_at is None:
                return False
            return now - self._checked_at < self.freshness_seconds

    def snapshot(self) -> ProviderHealthSnapshot:
        now = self._clock()
        with self._lock:
            if self._healthy is None:
                status = "unknown"
            else:
                status = "healthy" if self._healthy else "unhealthy"
            return {
                "status": status,
                "checked_at": self._checked_at,
                "age_seconds": now - self._checked_at if self._checked_at is not None else None,
                "reason": self._reason,
                "consecutive_failures": self._consecutive_failures,
                "freshness_seconds": self.freshness_seconds,
            }
