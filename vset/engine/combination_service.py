"""Vector combination engine.

Resolves a list of weighted inputs to vectors (literal vector text,
precomputed embeddings, or text/images embedded through the embedding
service) and merges them into one query or insert vector.

Resolutions run concurrently. An input that cannot be resolved is
skipped and reported, never fatal to the whole request.
"""

import asyncio
import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Any

from .embeddings.config import EmbeddingConfig
from .embedding_service import EmbeddingService, get_embedding_service
from .errors import ValidationError
from .scheduler import DebouncedCombiner, UpdateFn
from .vector_math import (
    CombinationMethod,
    combine_vectors,
    format_vector,
    normalize_vector,
    try_parse_vector,
    validate_vector,
)

logger = logging.getLogger(__name__)

# Vector text must hold more numbers than this to count as a literal vector;
# shorter numeric text (e.g. "1, 2") is embedded as text.
LITERAL_VECTOR_MIN_EXCLUSIVE = 5


@dataclass(slots=True)
class VectorInput:
    """One weighted input to a combination.

    Attributes:
        id: Caller-chosen identifier, echoed in the result.
        vector: Vector text ("0.1, 0.2, ...") or free text to embed.
        weight: Signed weight; negative subtracts the vector.
        image_data: Base64 image to embed instead of vector text.
        embedding: Precomputed vector, used as is when present.
    """

    id: str
    vector: str = ""
    weight: float = 1.0
    image_data: str | None = None
    embedding: list[float] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VectorInput":
        """Create a VectorInput from its wire representation."""
        embedding = data.get("embedding")
        weight = float(data.get("weight", 1.0))
        if not math.isfinite(weight):
            raise ValidationError(f"Weight must be a finite number, got {weight}")
        return cls(
            id=str(data.get("id") or uuid.uuid4().hex[:7]),
            vector=str(data.get("vector") or ""),
            weight=weight,
            image_data=data.get("imageData", data.get("image_data")),
            embedding=list(embedding) if embedding is not None else None,
        )


@dataclass(slots=True)
class SkippedInput:
    """An input left out of the combination, with the reason."""

    id: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "reason": self.reason}


@dataclass(slots=True)
class CombinationResult:
    """Outcome of a combination request."""

    vector: list[float]
    method: CombinationMethod
    normalized: bool
    used_ids: list[str] = field(default_factory=list)
    skipped: list[SkippedInput] = field(default_factory=list)

    @property
    def dimensions(self) -> int:
        return len(self.vector)

    def to_dict(self) -> dict[str, Any]:
        return {
            "vector": self.vector,
            "dimensions": self.dimensions,
            "method": self.method.value,
            "normalized": self.normalized,
            "usedIds": self.used_ids,
            "skipped": [s.to_dict() for s in self.skipped],
        }


class _InputSkipped(Exception):
    """Raised by resolution when an input is deliberately left out."""


class CombinationService:
    """Combines weighted vector inputs into a single vector.

    Args:
        embedding_service: Resolves text and images to vectors.
        power_factor: Default exponent for power-weighted combination.
        default_method: Method used when a request names none.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService | None = None,
        power_factor: float = 2.0,
        default_method: CombinationMethod = CombinationMethod.LINEAR,
        debounce_seconds: float = 0.5,
    ) -> None:
        self._embeddings = embedding_service or get_embedding_service()
        self._power_factor = power_factor
        self._default_method = default_method
        self._debounce_seconds = debounce_seconds

    @property
    def default_method(self) -> CombinationMethod:
        return self._default_method

    @property
    def debounce_seconds(self) -> float:
        return self._debounce_seconds

    def debounced(self, on_update: UpdateFn) -> DebouncedCombiner:
        """Build a debounced combiner publishing combined vectors to on_update.

        ``request()`` on the returned combiner takes the same arguments as
        ``combine()``. Requests replaced within the service's debounce
        period never run, and on_update receives the vector (None when
        nothing resolved) only when it changes.
        """

        async def compute(*args: Any, **kwargs: Any) -> list[float] | None:
            result = await self.combine(*args, **kwargs)
            return result.vector if result is not None else None

        return DebouncedCombiner(compute, on_update, quiet_period=self._debounce_seconds)

    async def _resolve(
        self, item: VectorInput, config: EmbeddingConfig | None
    ) -> list[float]:
        if item.embedding is not None:
            return validate_vector(item.embedding)

        active = config is not None and config.is_active

        if item.image_data:
            if not active:
                raise _InputSkipped("image input but no embedding model configured")
            return await self._embeddings.embed(item.image_data, config, is_image=True)

        text = item.vector.strip()
        if not text:
            raise _InputSkipped("empty input")

        literal = try_parse_vector(text)
        if literal is not None and len(literal) > LITERAL_VECTOR_MIN_EXCLUSIVE:
            logger.debug("Input %s is a literal vector (%d dims)", item.id, len(literal))
            return literal

        if not active:
            raise _InputSkipped("not a vector and no embedding model available")

        logger.debug("Input %s: embedding text %r", item.id, text[:30])
        return await self._embeddings.embed(text, config)

    async def combine(
        self,
        inputs: list[VectorInput],
        config: EmbeddingConfig | None = None,
        *,
        normalize: bool = False,
        method: CombinationMethod | str | None = None,
        power_factor: float | None = None,
    ) -> CombinationResult | None:
        """Resolve inputs and combine them into one vector.

        Args:
            inputs: Weighted inputs.
            config: Embedding configuration for text and image inputs.
            normalize: Rescale the combined vector to unit length.
            method: Combination method (enum or wire value); service
                default if None.
            power_factor: Exponent for power-weighted; service default if None.

        Returns:
            The combination result, or None if no input resolved. A single
            resolved vector is returned unchanged: weight, method and
            normalization only apply when two or more vectors combine.
        """
        method = self._default_method if method is None else CombinationMethod.parse(method)
        factor = self._power_factor if power_factor is None else power_factor

        outcomes = await asyncio.gather(
            *(self._resolve(item, config) for item in inputs),
            return_exceptions=True,
        )

        resolved: list[tuple[VectorInput, list[float]]] = []
        skipped: list[SkippedInput] = []
        for item, outcome in zip(inputs, outcomes, strict=True):
            if isinstance(outcome, _InputSkipped):
                logger.info("Skipping input %s: %s", item.id, outcome)
                skipped.append(SkippedInput(item.id, str(outcome)))
            elif isinstance(outcome, Exception):
                logger.warning("Failed to resolve input %s: %s", item.id, outcome)
                skipped.append(SkippedInput(item.id, f"{type(outcome).__name__}: {outcome}"))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                resolved.append((item, outcome))

        if not resolved:
            logger.info("No valid vectors to combine (%d inputs)", len(inputs))
            return None

        dimension = len(resolved[0][1])
        kept: list[tuple[VectorInput, list[float]]] = []
        for item, vec in resolved:
            if len(vec) != dimension:
                logger.warning(
                    "Dropping input %s: dimension %d does not match %d",
                    item.id,
                    len(vec),
                    dimension,
                )
                skipped.append(
                    SkippedInput(item.id, f"dimension {len(vec)} does not match {dimension}")
                )
            else:
                kept.append((item, vec))

        used_ids = [item.id for item, _ in kept]
        if len(kept) == 1:
            logger.info("Single vector, passing through unchanged (%d dims)", dimension)
            return CombinationResult(
                vector=list(kept[0][1]),
                method=method,
                normalized=False,
                used_ids=used_ids,
                skipped=skipped,
            )

        combined = combine_vectors(
            [vec for _, vec in kept],
            [item.weight for item, _ in kept],
            method,
            factor,
        )
        if normalize:
            combined = normalize_vector(combined)

        logger.info(
            "Combined %d vectors with %s%s: [%s%s] (%d dims)",
            len(kept),
            method.value,
            " (normalized)" if normalize else "",
            format_vector(combined[:5], precision=4),
            ", ..." if len(combined) > 5 else "",
            len(combined),
        )
        return CombinationResult(
            vector=combined,
            method=method,
            normalized=normalize,
            used_ids=used_ids,
            skipped=skipped,
        )

    async def generate_embedding(
        self, text: str, config: EmbeddingConfig | None
    ) -> list[float] | None:
        """Embed text, returning None when no model is set or generation fails."""
        if config is None or not config.is_active:
            return None
        try:
            return await self._embeddings.embed(text, config)
        except Exception as e:
            logger.error("Error generating embedding: %s", e)
            return None

    @staticmethod
    def format_vector(vector: list[float]) -> str:
        """Format a vector for display."""
        return format_vector(vector)


_service: CombinationService | None = None


def get_combination_service() -> CombinationService:
    """Get or create the singleton CombinationService."""
    global _service
    if _service is None:
        _service = CombinationService()
    return _service


def set_combination_service(service: CombinationService | None) -> None:
    """Set the CombinationService instance (for testing)."""
    global _service
    _service = service
