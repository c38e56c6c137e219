"""
Sliding-window admission control per caller identity.
"""

import random
import threading
from collections import deque
from typing import Callable, Deque, Dict, Optional

from talentrank.core.logging import logger
from talentrank.core.utils.datetime_utils import epoch_seconds


class SlidingWindowRateLimiter:
    """
    Allows at most ``max_requests`` admissions per identity within any
    trailing window of ``window_seconds``.

    Timestamps per identity are kept in arrival order and pruned lazily on
    each call. Identities with nothing left in-window are dropped by a
    probabilistic sweep (or an explicit ``cleanup()``), which bounds memory.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Optional[Callable[[], float]] = None,
        cleanup_probability: float = 0.01,
        rng: Optional[random.Random] = None,
        name: str = "rate_limiter",
    ):
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")
        if not 0 <= cleanup_probability <= 1:
            raise ValueError("cleanup_probability must be in [0, 1]")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_probability = cleanup_probability
        self.name = name
        self._clock = clock or epoch_seconds
        self._rng = rng or random.Random()
        self._windows: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

        logger.info(
            "Rate limiter initialized",
            limiter=name,
            max_requests=max_requests,
            window_seconds=window_seconds,
        )

    def _prune(self, timestamps: Deque[float], window_start: float) -> None:
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

    def try_acquire(self, identity: str) -> bool:
        """
        Admit one request for ``identity`` if it is under its limit.

        A refused request leaves the window untouched.
        """
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            timestamps = self._windows.get(identity)
            if timestamps is None:
                timestamps = deque()
                self._windows[identity] = timestamps

            self._prune(timestamps, window_start)

            if len(timestamps) >= self.max_requests:
                admitted = False
            else:
                # Keep the sequence non-decreasing even if the clock steps back
                timestamps.append(max(now, timestamps[-1]) if timestamps else now)
                admitted = True

            if self._rng.random() < self.cleanup_probability:
                self._sweep(window_start)

        if not admitted:
            logger.debug("Request refused by rate limiter", limiter=self.name, identity=identity)
        return admitted

    def remaining(self, identity: str) -> int:
        """Admissions still available for ``identity`` in the current window."""
        window_start = self._clock() - self.window_seconds
        with self._lock:
            timestamps = self._windows.get(identity)
            if not timestamps:
                return self.max_requests
            in_window = sum(1 for t in timestamps if t > window_start)
            return max(0, self.max_requests - in_window)

    def reset(self, identity: str) -> None:
        """Forget every admission recorded for ``identity``."""
        with self._lock:
            self._windows.pop(identity, None)

    def _sweep(self, window_start: float) -> int:
        removed = 0
        for identity in list(self._windows):
            timestamps = self._windows[identity]
            self._prune(timestamps, window_start)
            if not timestamps:
                del self._windows[identity]
                removed += 1
        return removed

    def cleanup(self) -> int:
        """Drop identities with no admissions in-window. Returns how many were removed."""
        window_start = self._clock() - self.window_seconds
        with self._lock:
            removed = self._sweep(window_start)
        if removed:
            logger.debug("Rate limiter cleanup", limiter=self.name, identities_removed=removed)
        return removed

    @property
    def tracked_identities(self) -> int:
        with self._lock:
            return len(self._windows)
