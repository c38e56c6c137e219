"""
Retry with exponential backoff and observable per-operation state.

Generic: knows nothing about the provider API. Callers decide what is
retryable through ``RetryConfig.retry_predicate``.
"""

import asyncio
import threading
from dataclasses import dataclass, field, replace
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import aiohttp

from talentrank.core.logging import logger

T = TypeVar('T')


def is_retryable_error(error: BaseException) -> bool:
    """Default predicate: TalentRank errors decide for themselves, network errors retry."""
    # core.exceptions imports core.utils, import at call time
    from talentrank.core.exceptions import TalentRankError

    if isinstance(error, TalentRankError):
        return error.is_retryable()
    return isinstance(error, (aiohttp.ClientError, asyncio.TimeoutError))


@dataclass(frozen=True)
class RetryConfig:
    """
    Backoff parameters.

    Before attempt k > 1 the controller sleeps
    ``min(base_delay * backoff_multiplier ** (k - 2), max_delay)`` seconds.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    retry_predicate: Callable[[BaseException], bool] = is_retryable_error

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

    def delay_before(self, attempt: int) -> float:
        """Delay to wait before ``attempt`` (numbered from 1)."""
        if attempt <= 1:
            return 0.0
        return min(self.base_delay * self.backoff_multiplier ** (attempt - 2), self.max_delay)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        retry_predicate: Callable[[BaseException], bool] = is_retryable_error,
    ) -> "RetryConfig":
        return cls(
            max_attempts=int(data.get("max_attempts", 3)),
            base_delay=float(data.get("base_delay", 1.0)),
            max_delay=float(data.get("max_delay", 10.0)),
            backoff_multiplier=float(data.get("backoff_multiplier", 2.0)),
            retry_predicate=retry_predicate,
        )


# Presets observed for each class of operation
RETRY_CONFIGS: Dict[str, RetryConfig] = {
    "embedding": RetryConfig(max_attempts=3, base_delay=2.0, max_delay=8.0, backoff_multiplier=2),
    "chat_completion": RetryConfig(
        max_attempts=2, base_delay=1.5, max_delay=6.0, backoff_multiplier=2
    ),
}


@dataclass
class RetryState:
    """State of an operation while its attempts are in flight."""

    operation_id: str
    attempt: int = 0
    last_error: Optional[BaseException] = None
    is_retrying: bool = False
    next_retry_in: float = 0.0
    history: list = field(default_factory=list)


class RetryController:
    """
    Runs async operations with exponential backoff.

    - One RetryState per operation id, removed on terminal success or failure
    - Calls sharing an operation id are queued behind each other; different
      ids run independently
    - ``sleep`` is injectable so tests can record delays instead of waiting
    """

    def __init__(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self._sleep = sleep
        self._states: Dict[str, RetryState] = {}
        self._states_lock = threading.Lock()
        self._id_locks: Dict[str, asyncio.Lock] = {}
        self._id_waiters: Dict[str, int] = {}

    def _set_state(self, state: RetryState) -> None:
        with self._states_lock:
            self._states[state.operation_id] = state

    def _drop_state(self, operation_id: str) -> None:
        with self._states_lock:
            self._states.pop(operation_id, None)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_id: str,
        config: Optional[RetryConfig] = None,
    ) -> T:
        """
        Run ``operation`` until it succeeds, hits a non-retryable error or
        exhausts ``config.max_attempts``.

        Returns:
            Result of the first successful attempt

        Raises:
            The last error on terminal failure
        """
        config = config or RetryConfig()

        lock = self._id_locks.get(operation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._id_locks[operation_id] = lock
        self._id_waiters[operation_id] = self._id_waiters.get(operation_id, 0) + 1

        try:
            async with lock:
                return await self._run(operation, operation_id, config)
        finally:
            self._id_waiters[operation_id] -= 1
            if self._id_waiters[operation_id] == 0:
                del self._id_waiters[operation_id]
                self._id_locks.pop(operation_id, None)

    async def _run(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_id: str,
        config: RetryConfig,
    ) -> T:
        state = RetryState(operation_id=operation_id)
        self._set_state(state)

        try:
            for attempt in range(1, config.max_attempts + 1):
                state.attempt = attempt
                state.is_retrying = attempt > 1

                if attempt > 1:
                    delay = config.delay_before(attempt)
                    state.next_retry_in = delay
                    logger.info(
                        "Retrying operation",
                        operation_id=operation_id,
                        attempt=attempt,
                        max_attempts=config.max_attempts,
                        delay=delay,
                    )
                    await self._sleep(delay)

                try:
                    result = await operation()
                except Exception as e:
                    state.last_error = e
                    state.history.append(type(e).__name__)
                    retryable = config.retry_predicate(e)

                    logger.warning(
                        "Attempt failed",
                        operation_id=operation_id,
                        attempt=attempt,
                        max_attempts=config.max_attempts,
                        retryable=retryable,
                        error=str(e),
                    )

                    if not retryable or attempt >= config.max_attempts:
                        logger.error(
                            "Operation failed permanently",
                            operation_id=operation_id,
                            attempts=attempt,
                            error=str(e),
                        )
                        raise
                    continue

                if attempt > 1:
                    logger.info(
                        "Operation succeeded after retry", operation_id=operation_id, attempt=attempt
                    )
                return result
        finally:
            self._drop_state(operation_id)

        # max_attempts >= 1 guarantees the loop returns or raises
        raise RuntimeError(f"No attempt was made for {operation_id}")

    def get_retry_state(self, operation_id: str) -> Optional[RetryState]:
        """Copy of the in-flight state for ``operation_id``, or None."""
        with self._states_lock:
            state = self._states.get(operation_id)
            return replace(state, history=list(state.history)) if state else None

    def is_retrying(self, operation_id: str) -> bool:
        with self._states_lock:
            state = self._states.get(operation_id)
            return bool(state and state.is_retrying)

    def clear_retry_state(self, operation_id: str) -> None:
        self._drop_state(operation_id)

    @property
    def active_operations(self) -> int:
        with self._states_lock:
            return len(self._states)


def with_retry(
    controller: RetryController, operation_id: str, config: Optional[RetryConfig] = None
):
    """Decorator running an async function through ``controller``."""

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await controller.execute_with_retry(
                lambda: func(*args, **kwargs), operation_id, config
            )

        return wrapper

    return decorator
