"""In-memory vector store.

Keeps elements in a dict and ranks by cosine similarity with a linear
scan. Used by default and in tests; no external service required.
"""

import logging
from typing import Any

from ..errors import DimensionMismatchError, ValidationError
from ..similarity import cosine_similarity
from ..vector_math import validate_vector
from . import VectorResult, VectorStore

logger = logging.getLogger(__name__)


class MemoryStore(VectorStore):
    """Dict-backed vector store.

    The dimension is fixed by the first vector added and every later add
    or search must match it.
    """

    def __init__(self) -> None:
        self._elements: dict[str, tuple[list[float], dict[str, Any]]] = {}
        self._dimension: int | None = None

    def _check(self, vector: list[float]) -> list[float]:
        vector = validate_vector(vector)
        if self._dimension is not None and len(vector) != self._dimension:
            raise DimensionMismatchError(
                f"Vector has {len(vector)} dimensions, store expects {self._dimension}",
                expected=self._dimension,
                actual=len(vector),
            )
        return vector

    async def add(
        self,
        key: str,
        vector: list[float],
        attributes: dict[str, Any] | None = None,
    ) -> bool:
        if not key:
            raise ValidationError("Element key must not be empty")
        vector = self._check(vector)
        if self._dimension is None:
            self._dimension = len(vector)
            logger.info("Memory store dimension set to %d", self._dimension)
        is_new = key not in self._elements
        self._elements[key] = (list(vector), dict(attributes or {}))
        return is_new

    async def search(self, vector: list[float], count: int = 10) -> list[VectorResult]:
        if count < 1:
            raise ValidationError("count must be >= 1")
        if not self._elements:
            return []
        vector = self._check(vector)
        results = [
            VectorResult(key=key, score=cosine_similarity(vector, stored), attributes=attrs)
            for key, (stored, attrs) in self._elements.items()
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        return results[:count]

    async def remove(self, key: str) -> bool:
        return self._elements.pop(key, None) is not None

    async def count(self) -> int:
        return len(self._elements)

    async def dimension(self) -> int | None:
        return self._dimension
