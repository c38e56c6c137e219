"""
Standard types for the embeddings module.

Defines EmbeddingVector as the single embedding format inside TalentRank
and the result type returned by the provider adapter.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Union

import numpy as np


class EmbeddingVector:
    """Standard representation of embeddings in TalentRank.

    Internally uses NumPy float32. The dimension is whatever the provider
    returned: vectors are NOT normalized here, cosine similarity takes
    care of magnitudes.

    Attributes:
        _data: 1-D NumPy array (float32)
    """

    __slots__ = ("_data",)

    def __init__(self, data: Union[np.ndarray, Sequence[float]]):
        """Initializes the embedding with validation.

        Args:
            data: Vector as NumPy array or sequence of floats

        Raises:
            ValueError: If the vector is empty, not 1-D or has non-finite values
        """
        array = np.asarray(data, dtype=np.float32)
        if array.ndim != 1 or array.shape[0] == 0:
            raise ValueError(f"Embedding must be a non-empty 1-D vector, got shape {array.shape}")
        if not np.all(np.isfinite(array)):
            raise ValueError("Embedding contains NaN or infinite values")
        self._data = array

    @classmethod
    def from_any(cls, value: Any) -> Optional["EmbeddingVector"]:
        """Build from a vector, list, tuple, array or JSON string.

        Returns:
            None for missing or empty values

        Raises:
            ValueError: If the string is not JSON or the value is not a vector
        """
        if value is None:
            return None
        if isinstance(value, EmbeddingVector):
            return value
        if isinstance(value, str):
            if not value.strip():
                return None
            try:
                value = json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"Embedding string is not valid JSON: {e}") from e
            if value is None:
                return None
        if not isinstance(value, (list, tuple, np.ndarray)):
            raise ValueError(f"Unsupported embedding type: {type(value).__name__}")
        if len(value) == 0:
            return None
        return cls(value)

    @property
    def numpy(self) -> np.ndarray:
        """For efficient mathematical operations."""
        return self._data

    @property
    def list(self) -> List[float]:
        """For generic serialization."""
        return self._data.tolist()

    @property
    def dimension(self) -> int:
        return int(self._data.shape[0])

    @property
    def norm(self) -> float:
        return float(np.linalg.norm(self._data))

    @property
    def nbytes(self) -> int:
        """Size used by the cache byte budget."""
        return int(self._data.nbytes)

    def __len__(self) -> int:
        return self.dimension

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EmbeddingVector):
            return NotImplemented
        return self._data.shape == other._data.shape and bool(
            np.array_equal(self._data, other._data)
        )

    def __repr__(self) -> str:
        return f"EmbeddingVector(dimension={self.dimension})"


class UnavailableReason(str, Enum):
    """Why no embedding could be produced for a text."""

    EMPTY_INPUT = "empty_input"
    PROVIDER_UNHEALTHY = "provider_unhealthy"
    RATE_LIMITED = "rate_limited"
    PROVIDER_FAILED = "provider_failed"


@dataclass(frozen=True)
class EmbeddingResult:
    """
    Outcome of an embedding request.

    Exactly one of ``vector`` and ``reason`` is set. Unavailability is a
    value, not an exception: callers decide how to degrade.
    """

    vector: Optional[EmbeddingVector] = None
    reason: Optional[UnavailableReason] = None
    from_cache: bool = False

    @property
    def available(self) -> bool:
        return self.vector is not None

    @classmethod
    def of(cls, vector: EmbeddingVector, from_cache: bool = False) -> "EmbeddingResult":
        return cls(vector=vector, from_cache=from_cache)

    @classmethod
    def unavailable(cls, reason: UnavailableReason) -> "EmbeddingResult":
        return cls(reason=reason)
