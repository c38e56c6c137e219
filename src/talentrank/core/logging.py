"""
Simple asynchronous logging for TalentRank.
"""

import re
import time
import os
import yaml
from pathlib import Path
from typing import List, Pattern, Optional
from contextlib import contextmanager
from loguru import logger as loguru_logger


def format_record(record) -> str:
    """
    loguru format callable: flat line plus the structured context.

    Context ends up as ``key=value`` pairs after the message, e.g.
    ``... | ranking | Dimension mismatch | expected=3072 actual=1536``.
    """
    extra = record["extra"]
    extra.setdefault("component", "talentrank")
    context = {k: v for k, v in extra.items() if k not in ("component", "_context_line")}
    extra["_context_line"] = (
        " | " + " ".join(f"{k}={v}" for k, v in context.items()) if context else ""
    )
    return (
        "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[component]} | {message}{extra[_context_line]}\n"
        "{exception}"
    )


class AsyncLogger:
    """
    Asynchronous logger with a flat format.

    Format: timestamp | level | component | message | key=value ...
    Structured context is passed as keyword arguments and kept in ``extra``.
    """

    # Single handler shared between all instances
    _handler_id = None

    def __init__(self, component: str, debug_mode: bool = False):
        self.component = component
        self.debug_mode = debug_mode
        self._setup_async_handler()

    def _setup_async_handler(self):
        """
        Configure the shared enqueued file sink.

        - Non-blocking for the caller (loguru enqueue)
        - Rotation at 10MB
        - Only one sink for the whole process
        """
        if AsyncLogger._handler_id is None:
            AsyncLogger._handler_id = loguru_logger.add(
                os.getenv("TALENTRANK_LOG_FILE", "debug.log"),
                format=format_record,
                rotation="10 MB",
                compression="zip",
                enqueue=True,
            )

    def log(self, level: str, message: str, **context):
        """Record a message with structured context."""
        loguru_logger.bind(component=self.component, **context).log(level, message)

    def debug(self, message: str, **context):
        """Log at DEBUG level."""
        self.log("DEBUG", message, **context)

    def info(self, message: str, **context):
        """Log at INFO level."""
        self.log("INFO", message, **context)

    def warning(self, message: str, **context):
        """Log at WARNING level."""
        self.log("WARNING", message, **context)

    def error(self, message: str, include_trace: Optional[bool] = None, **context):
        """
        Log at ERROR level with an optional stack trace.

        Args:
            message: Error message
            include_trace: Whether to attach the stack trace (None = follow debug_mode)
            **context: Additional context
        """
        should_include_trace = include_trace if include_trace is not None else self.debug_mode

        if should_include_trace:
            import traceback

            context["stack_trace"] = traceback.format_exc()

        self.log("ERROR", message, **context)


class SensitiveDataMasker:
    """
    Masks sensitive data before it reaches the logs.

    Masked patterns:
    - Bearer tokens and API keys
    - key=value secrets
    - Long hashes (only the first 8 chars are kept)
    """

    def __init__(self, patterns: Optional[List[Pattern]] = None):
        self.patterns = patterns or []

    def mask(self, text: str) -> str:
        """
        Mask sensitive data.

        Examples:
        - "Bearer github_pat_11ABCDEF..." -> "Bearer ***"
        - "token=abc123def456" -> "token=***"
        - "a1b2c3d4e5f6a7b8c9d0" -> "a1b2c3d4..."
        """
        masked = text

        # Authorization headers echoed back by the provider
        masked = re.sub(r'(Bearer\s+)[A-Za-z0-9_\-\.]+', r'\1***', masked)

        # GitHub style personal access tokens
        masked = re.sub(r'\bgithub_pat_[A-Za-z0-9_]+', '***TOKEN***', masked)

        # key=value pairs with long values
        masked = re.sub(
            r'(api_key|token|secret|password|key)=[a-zA-Z0-9_\-]{8,}',
            r'\1=***',
            masked,
            flags=re.IGNORECASE,
        )

        # Long hex hashes
        masked = re.sub(r'\b([a-f0-9]{8})[a-f0-9]{8,}\b', r'\1...', masked)

        # Remaining long opaque tokens
        masked = re.sub(r'\b[a-zA-Z0-9]{32,}\b', '***TOKEN***', masked)

        for pattern in self.patterns:
            masked = pattern.sub('***', masked)

        return masked


class PerformanceLogger:
    """
    Logger specialised in timing operations.
    """

    def __init__(self):
        self.logger = AsyncLogger("performance")

    @contextmanager
    def measure(self, operation: str, **context):
        """
        Context manager measuring an operation.

        Usage:
        ```
        with perf_logger.measure("rank", scope_key=scope):
            response = await engine.rank(query, documents)
        ```
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start
            self.logger.info(
                "Operation completed", operation=operation, duration_ms=duration * 1000, **context
            )


def _get_debug_mode() -> bool:
    """Read debug_mode from the .talentrank file or the environment."""
    config_path = Path(".talentrank")
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
            return bool(config.get("logging", {}).get("debug_mode", False))
        except (OSError, yaml.YAMLError):
            pass

    return os.getenv("TALENTRANK_DEBUG", "false").lower() == "true"


logger = AsyncLogger("talentrank", debug_mode=_get_debug_mode())
perf_logger = PerformanceLogger()
