"""Cosine similarity between embedding vectors."""

from collections.abc import Sequence
from typing import Any

from .errors import DimensionMismatchError
from .vector_math import dot, l2_norm


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors.

    Args:
        a: First vector.
        b: Second vector, same dimension as a.

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero length.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Cannot compare vectors of dimension {len(a)} and {len(b)}",
            expected=len(a),
            actual=len(b),
        )
    norm_a = l2_norm(a)
    norm_b = l2_norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = dot(a, b) / (norm_a * norm_b)
    # Rounding can push parallel vectors slightly past 1.
    return max(-1.0, min(1.0, similarity))


def similarity_matrix(vectors: Sequence[Sequence[float]]) -> list[list[float | None]]:
    """Pairwise cosine similarity for display.

    The diagonal is always 1.0. Pairs with different dimensions get None
    so the rest of the matrix is still usable.
    """
    size = len(vectors)
    matrix: list[list[float | None]] = [[None] * size for _ in range(size)]
    for i in range(size):
        matrix[i][i] = 1.0
        for j in range(i + 1, size):
            try:
                value: float | None = cosine_similarity(vectors[i], vectors[j])
            except DimensionMismatchError:
                value = None
            matrix[i][j] = value
            matrix[j][i] = value
    return matrix


def compare_vectors(a: Sequence[float], b: Sequence[float]) -> dict[str, Any]:
    """Describe how two vectors relate, for debugging embedding output.

    Reports whether dimensions match, a short sample and the value range
    of each vector, and their cosine similarity when comparable.
    """
    dimensions_match = len(a) == len(b)
    return {
        "dimensionsMatch": dimensions_match,
        "vector1Length": len(a),
        "vector2Length": len(b),
        "vector1Sample": list(a[:5]),
        "vector2Sample": list(b[:5]),
        "vector1Range": _value_range(a),
        "vector2Range": _value_range(b),
        "similarity": cosine_similarity(a, b) if dimensions_match and a else None,
    }


def _value_range(vec: Sequence[float]) -> dict[str, float] | None:
    if not vec:
        return None
    return {"min": min(vec), "max": max(vec)}
