"""Vector helpers tolerant of ragged inputs.

Vectors of different lengths are compared index-wise up to the longer length, with
missing entries treated as zero.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

Vector = Sequence[float]


def _pad(vector: Vector, size: int) -> np.ndarray:
    array = np.zeros(size, dtype=np.float64)
    values = np.asarray(vector, dtype=np.float64)
    array[: values.shape[0]] = values
    return array


def cosine(a: Vector, b: Vector) -> float:
    """Cosine similarity; a zero-norm operand yields 0.0 instead of NaN."""

    size = max(len(a), len(b))
    if size == 0:
        return 0.0
    left = _pad(a, size)
    right = _pad(b, size)
    denominator = float(np.linalg.norm(left) * np.linalg.norm(right)) or 1.0
    return float(np.clip(np.dot(left, right) / denominator, -1.0, 1.0))


def mean(vectors: Sequence[Vector]) -> list[float]:
    if not vectors:
        return []
    size = max(len(vector) for vector in vectors)
    stacked = np.vstack([_pad(vector, size) for vector in vectors])
    return stacked.mean(axis=0).tolist()
