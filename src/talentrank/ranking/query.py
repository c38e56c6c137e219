"""
Requested result count extraction ("show me top 12 candidates").
"""

import re
from enum import Enum
from typing import Optional, Tuple

DEFAULT_COUNT = 5
MIN_COUNT = 1
MAX_COUNT = 50

# Checked in order; the first in-range match wins
COUNT_PATTERNS: Tuple["re.Pattern[str]", ...] = (
    re.compile(r"(?:top|best|show|find|get|give)\s+(?:me\s+)?(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s+(?:top|best|matching|candidates|resumes)", re.IGNORECASE),
    re.compile(r"(?:first|top)\s+(\d+)", re.IGNORECASE),
    re.compile(r"show\s+(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s+resumes?", re.IGNORECASE),
)


class CountPolicy(str, Enum):
    """What to do with a requested count outside [min_count, max_count]."""

    DEFAULT = "default"  # fall back to the default count
    CLAMP = "clamp"  # move to the nearest bound


def apply_count_policy(
    count: int,
    policy: CountPolicy = CountPolicy.DEFAULT,
    default: int = DEFAULT_COUNT,
    min_count: int = MIN_COUNT,
    max_count: int = MAX_COUNT,
) -> int:
    if min_count <= count <= max_count:
        return count
    if CountPolicy(policy) == CountPolicy.CLAMP:
        return max(min_count, min(max_count, count))
    return default


def extract_requested_count(
    text: str,
    policy: CountPolicy = CountPolicy.DEFAULT,
    default: int = DEFAULT_COUNT,
    min_count: int = MIN_COUNT,
    max_count: int = MAX_COUNT,
) -> int:
    """
    Result count asked for in free text.

    Examples:
        "show me top 12 candidates" -> 12
        "find candidates" -> 5
        "top 500" -> 5 (DEFAULT) or 50 (CLAMP)
    """
    if not text:
        return default
    for pattern in COUNT_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        count = int(match.group(1))
        if min_count <= count <= max_count:
            return count
        if CountPolicy(policy) == CountPolicy.CLAMP:
            return apply_count_policy(count, policy, default, min_count, max_count)
        # DEFAULT: an out-of-range number does not count as a request, keep looking
    return default


def resolve_requested_count(
    hint: Optional[int],
    text: str,
    policy: CountPolicy = CountPolicy.DEFAULT,
    default: int = DEFAULT_COUNT,
    min_count: int = MIN_COUNT,
    max_count: int = MAX_COUNT,
) -> int:
    """Explicit hint wins over the text; both go through the same policy."""
    if hint is not None:
        return apply_count_policy(hint, policy, default, min_count, max_count)
    return extract_requested_count(text, policy, default, min_count, max_count)
