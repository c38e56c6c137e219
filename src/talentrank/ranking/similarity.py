"""
Vector similarity helpers.
"""

from typing import Optional, Sequence, Union

import numpy as np

from talentrank.core.exceptions import DimensionMismatchError
from talentrank.embeddings.types import EmbeddingVector

VectorLike = Union[EmbeddingVector, np.ndarray, Sequence[float]]


def _as_array(vector: VectorLike) -> np.ndarray:
    if isinstance(vector, EmbeddingVector):
        return vector.numpy
    return np.asarray(vector, dtype=np.float32)


def _cosine(a: VectorLike, b: VectorLike) -> Optional[float]:
    left = _as_array(a)
    right = _as_array(b)
    if left.shape != right.shape:
        raise DimensionMismatchError(int(left.size), int(right.size))

    # float64 accumulation keeps 3072-dim dot products stable
    left = left.astype(np.float64)
    right = right.astype(np.float64)
    norm_product = float(np.linalg.norm(left) * np.linalg.norm(right))
    if norm_product == 0.0:
        return None
    cos = float(np.dot(left, right)) / norm_product
    return max(-1.0, min(1.0, cos))


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine similarity in [-1, 1].

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        DimensionMismatchError: If the vectors have different lengths
    """
    cos = _cosine(a, b)
    return 0.0 if cos is None else cos


def normalized_cosine(a: VectorLike, b: VectorLike) -> float:
    """Cosine similarity mapped from [-1, 1] to [0, 1].

    A zero-magnitude vector has no direction and scores 0.0, not the
    midpoint 0.5.

    Raises:
        DimensionMismatchError: If the vectors have different lengths
    """
    cos = _cosine(a, b)
    if cos is None:
        return 0.0
    return (cos + 1.0) / 2.0
