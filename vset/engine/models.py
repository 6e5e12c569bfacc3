"""Request models for vset JSON-RPC methods.

Each request parses its JSON-RPC params (camelCase on the wire, with
snake_case accepted) and raises ValidationError for malformed input, which
the dispatcher reports as invalid params.
"""

import math
from dataclasses import dataclass, field
from typing import Any

from .combination_service import VectorInput
from .embeddings.config import EmbeddingConfig, parse_embedding_config
from .errors import ValidationError
from .vector_math import CombinationMethod, parse_vector, validate_vector

MAX_BATCH_SIZE = 256
MAX_SEARCH_COUNT = 100


def _get(params: dict[str, Any], camel: str, snake: str | None = None, default: Any = None) -> Any:
    if camel in params:
        return params[camel]
    if snake is not None and snake in params:
        return params[snake]
    return default


def parse_config_param(params: dict[str, Any]) -> EmbeddingConfig | None:
    """Parse the optional embedding config carried by a request.

    Returns None when the request carries no config, so the server
    default applies. Environment references are never expanded here.
    """
    raw = _get(params, "embeddingConfig", "embedding_config")
    if raw is None:
        raw = params.get("config")
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError("embeddingConfig must be an object")
    return parse_embedding_config(raw)


def parse_vector_param(value: Any, name: str = "vector") -> list[float]:
    """Accept a vector as a JSON array or as comma-separated text."""
    if value is None:
        raise ValidationError(f"{name} is required")
    if isinstance(value, str):
        return parse_vector(value)
    if isinstance(value, list):
        return validate_vector(value)
    raise ValidationError(f"{name} must be an array of numbers or vector text")


def _parse_inputs(raw: Any) -> list[VectorInput]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("inputs must be a non-empty array")
    inputs: list[VectorInput] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"inputs[{i}] must be an object")
        try:
            inputs.append(VectorInput.from_dict(item))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"inputs[{i}] is invalid: {e}") from None
    return inputs


def _parse_power_factor(params: dict[str, Any]) -> float | None:
    raw = _get(params, "powerFactor", "power_factor")
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("powerFactor must be a number") from None
    if not math.isfinite(value) or value <= 0:
        raise ValidationError("powerFactor must be a positive finite number")
    return value


@dataclass(slots=True)
class EmbedRequest:
    """Request for vset.embed."""

    input: str
    is_image: bool = False
    config: EmbeddingConfig | None = None

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "EmbedRequest":
        """Create request from JSON-RPC params."""
        data = params.get("input", params.get("text"))
        is_image = bool(_get(params, "isImage", "is_image", False))
        image_data = _get(params, "imageData", "image_data")
        if image_data:
            data, is_image = image_data, True
        if not isinstance(data, str) or not data:
            raise ValidationError("input is required")
        return cls(input=data, is_image=is_image, config=parse_config_param(params))


@dataclass(slots=True)
class EmbedBatchRequest:
    """Request for vset.embedBatch."""

    inputs: list[str]
    is_image: bool = False
    config: EmbeddingConfig | None = None

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "EmbedBatchRequest":
        """Create request from JSON-RPC params."""
        inputs = params.get("inputs")
        if not isinstance(inputs, list) or not all(isinstance(i, str) for i in inputs):
            raise ValidationError("inputs must be an array of strings")
        if len(inputs) > MAX_BATCH_SIZE:
            raise ValidationError(f"inputs exceeds maximum batch size of {MAX_BATCH_SIZE}")
        return cls(
            inputs=inputs,
            is_image=bool(_get(params, "isImage", "is_image", False)),
            config=parse_config_param(params),
        )


@dataclass(slots=True)
class CombineRequest:
    """Request for vset.combine."""

    inputs: list[VectorInput]
    method: CombinationMethod | None = None
    normalize: bool = False
    power_factor: float | None = None
    config: EmbeddingConfig | None = None

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "CombineRequest":
        """Create request from JSON-RPC params."""
        return cls(
            inputs=_parse_inputs(params.get("inputs")),
            method=CombinationMethod.parse(params["method"]) if params.get("method") else None,
            normalize=bool(_get(params, "normalize", default=False)),
            power_factor=_parse_power_factor(params),
            config=parse_config_param(params),
        )


@dataclass(slots=True)
class SimilarityRequest:
    """Request for vset.similarity."""

    vectors: list[list[float]] = field(default_factory=list)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "SimilarityRequest":
        """Create request from JSON-RPC params."""
        raw = params.get("vectors")
        if not isinstance(raw, list) or len(raw) < 2:
            raise ValidationError("vectors must contain at least two vectors")
        return cls(vectors=[parse_vector_param(v, f"vectors[{i}]") for i, v in enumerate(raw)])


@dataclass(slots=True)
class CompareVectorsRequest:
    """Request for vset.compareVectors."""

    vector1: list[float]
    vector2: list[float]

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "CompareVectorsRequest":
        """Create request from JSON-RPC params."""
        return cls(
            vector1=parse_vector_param(params.get("vector1"), "vector1"),
            vector2=parse_vector_param(params.get("vector2"), "vector2"),
        )


@dataclass(slots=True)
class ConfigureCacheRequest:
    """Request for vset.configureCache."""

    enabled: bool | None = None
    ttl_seconds: float | None = None

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "ConfigureCacheRequest":
        """Create request from JSON-RPC params."""
        enabled = params.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            raise ValidationError("enabled must be a boolean")
        ttl = _get(params, "ttlSeconds", "ttl_seconds")
        if ttl is not None:
            try:
                ttl = float(ttl)
            except (TypeError, ValueError):
                raise ValidationError("ttlSeconds must be a number") from None
            if ttl <= 0:
                raise ValidationError("ttlSeconds must be positive")
        return cls(enabled=enabled, ttl_seconds=ttl)


@dataclass(slots=True)
class StoreVectorSource:
    """Either a literal vector or a set of inputs to combine.

    Shared by vset.addVector and vset.searchVectors.
    """

    vector: list[float] | None = None
    combine: CombineRequest | None = None

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "StoreVectorSource":
        if params.get("vector") is not None:
            return cls(vector=parse_vector_param(params["vector"]))
        if params.get("inputs") is not None:
            return cls(combine=CombineRequest.from_params(params))
        raise ValidationError("Either vector or inputs is required")


@dataclass(slots=True)
class AddVectorRequest:
    """Request for vset.addVector."""

    key: str
    source: StoreVectorSource
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "AddVectorRequest":
        """Create request from JSON-RPC params."""
        key = params.get("key", params.get("element"))
        if not isinstance(key, str) or not key.strip():
            raise ValidationError("key is required")
        attributes = params.get("attributes") or {}
        if not isinstance(attributes, dict):
            raise ValidationError("attributes must be an object")
        return cls(
            key=key.strip(),
            source=StoreVectorSource.from_params(params),
            attributes=attributes,
        )


@dataclass(slots=True)
class SearchVectorsRequest:
    """Request for vset.searchVectors."""

    source: StoreVectorSource
    count: int = 10

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "SearchVectorsRequest":
        """Create request from JSON-RPC params."""
        try:
            count = int(params.get("count", params.get("limit", 10)))
        except (TypeError, ValueError):
            raise ValidationError("count must be an integer") from None
        count = max(1, min(MAX_SEARCH_COUNT, count))
        return cls(source=StoreVectorSource.from_params(params), count=count)
