"""Vector store boundary.

Combined vectors are handed to a vector store for insertion (``add``) or
similarity search (``search``). Backends implement ``VectorStore``; the
engine never depends on a backend's wire format.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class VectorResult:
    """Single result from a similarity search."""

    key: str
    score: float
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "score": self.score, "attributes": self.attributes}


class VectorStore(ABC):
    """Abstract vector store keyed by element name."""

    @abstractmethod
    async def add(
        self,
        key: str,
        vector: list[float],
        attributes: dict[str, Any] | None = None,
    ) -> bool:
        """Insert or replace the vector stored under key.

        Args:
            key: Element name.
            vector: Vector to store.
            attributes: Optional JSON-serializable attributes.

        Returns:
            True if the key was new, False if it replaced an element.

        Raises:
            DimensionMismatchError: If the vector does not match the
                store's dimension.
        """
        ...

    @abstractmethod
    async def search(self, vector: list[float], count: int = 10) -> list[VectorResult]:
        """Return up to count elements ranked by cosine similarity, best first."""
        ...

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Remove an element. Returns True if it existed."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored elements."""
        ...

    @abstractmethod
    async def dimension(self) -> int | None:
        """Return the store's vector dimension, or None while it is empty."""
        ...

    async def close(self) -> None:  # noqa: B027
        """Release resources. Override if the backend holds any."""
