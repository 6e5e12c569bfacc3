"""Embedding configuration variants and the known-model registry.

An embedding configuration selects exactly one provider. Each provider
has its own frozen dataclass carrying only the settings that provider
understands; ``EmbeddingConfig`` is the union of all of them.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar

from ..errors import ConfigurationError

DATA_FORMAT_TEXT = "text"
DATA_FORMAT_IMAGE = "image"
DATA_FORMAT_TEXT_AND_IMAGE = "text-and-image"


@dataclass(frozen=True, slots=True)
class ModelInfo:
    """Static facts about an embedding model.

    Attributes:
        name: Model identifier as passed to the provider.
        dimensions: Length of every vector the model produces.
        data_format: Which inputs the model embeds.
        description: Short human-readable summary.
    """

    name: str
    dimensions: int
    data_format: str = DATA_FORMAT_TEXT
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "dimensions": self.dimensions,
            "dataFormat": self.data_format,
            "description": self.description,
        }


def _models(*infos: ModelInfo) -> dict[str, ModelInfo]:
    return {info.name: info for info in infos}


MODEL_REGISTRY: dict[str, dict[str, ModelInfo]] = {
    "openai": _models(
        ModelInfo("text-embedding-3-small", 1536, description="OpenAI small, fast and cheap"),
        ModelInfo("text-embedding-3-large", 3072, description="OpenAI large, highest quality"),
        ModelInfo("text-embedding-ada-002", 1536, description="OpenAI legacy model"),
    ),
    "gemini": _models(
        ModelInfo("gemini-embedding-001", 768, description="Google Gemini embedding model"),
        ModelInfo("text-embedding-004", 768, description="Google text embedding model"),
    ),
    "ollama": _models(
        ModelInfo("mxbai-embed-large", 1024, description="Large embedding model from mixedbread.ai"),
        ModelInfo("nomic-embed-text", 768, description="Long-context text embedding model"),
        ModelInfo("all-minilm", 384, description="Small sentence embedding model"),
        ModelInfo("snowflake-arctic-embed", 1024, description="Snowflake retrieval model"),
    ),
    "sentence-transformers": _models(
        ModelInfo("all-MiniLM-L6-v2", 384, description="Fast general-purpose sentence model"),
        ModelInfo("all-mpnet-base-v2", 768, description="Higher quality sentence model"),
        ModelInfo("BAAI/bge-small-en-v1.5", 384, description="Retrieval-tuned small model"),
    ),
    "clip": _models(
        ModelInfo(
            "clip-ViT-B-32",
            512,
            DATA_FORMAT_TEXT_AND_IMAGE,
            "Multi-modal model embedding images and text in one space",
        ),
    ),
}


def lookup_model(provider: str, model_name: str) -> ModelInfo | None:
    """Return registry facts for a model, or None if unknown."""
    return MODEL_REGISTRY.get(provider, {}).get(model_name)


class _ProviderConfig:
    """Behaviour shared by every configuration variant."""

    __slots__ = ()

    provider: ClassVar[str]
    credential_fields: ClassVar[tuple[str, ...]] = ()

    @property
    def is_active(self) -> bool:
        return self.provider != "none"

    @property
    def model_info(self) -> ModelInfo | None:
        return lookup_model(self.provider, getattr(self, "model_name", ""))

    @property
    def expected_dimensions(self) -> int | None:
        info = self.model_info
        return info.dimensions if info else None

    def cache_identity(self) -> dict[str, Any]:
        """Settings that influence the produced vector, credentials excluded."""
        identity: dict[str, Any] = {"provider": self.provider}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            if f.name in self.credential_fields or f.name == "cache_ttl_seconds":
                continue
            identity[f.name] = getattr(self, f.name)
        return identity

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the flat wire shape, masking credentials."""
        result: dict[str, Any] = {"provider": self.provider}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name in self.credential_fields:
                value = "***"
            result[_camel(f.name)] = value
        return result


@dataclass(frozen=True, slots=True)
class NoEmbeddingConfig(_ProviderConfig):
    """No embedding model: only literal vectors are accepted."""

    provider: ClassVar[str] = "none"

    model_name: str = "unknown"
    dimensions: int = 0
    cache_ttl_seconds: float | None = None

    @property
    def expected_dimensions(self) -> int | None:
        return self.dimensions or None


@dataclass(frozen=True, slots=True)
class OpenAIConfig(_ProviderConfig):
    """OpenAI embeddings API."""

    provider: ClassVar[str] = "openai"
    credential_fields: ClassVar[tuple[str, ...]] = ("api_key",)

    model_name: str = "text-embedding-3-small"
    api_key: str | None = None
    api_url: str = "https://api.openai.com/v1"
    organization: str | None = None
    batch_size: int = 20
    cache_ttl_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class GeminiConfig(_ProviderConfig):
    """Google Gemini embedContent API."""

    provider: ClassVar[str] = "gemini"
    credential_fields: ClassVar[tuple[str, ...]] = ("api_key",)

    model_name: str = "gemini-embedding-001"
    api_key: str | None = None
    api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    max_length: int = 8000
    cache_ttl_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class OllamaConfig(_ProviderConfig):
    """Ollama server embedding endpoint."""

    provider: ClassVar[str] = "ollama"

    model_name: str = "mxbai-embed-large"
    api_url: str = "http://localhost:11434"
    prompt_template: str | None = None
    cache_ttl_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class SentenceTransformerConfig(_ProviderConfig):
    """In-process sentence-transformers text model."""

    provider: ClassVar[str] = "sentence-transformers"

    model_name: str = "all-MiniLM-L6-v2"
    device: str | None = None
    prompt_template: str | None = None
    batch_size: int = 32
    cache_ttl_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class ClipConfig(_ProviderConfig):
    """In-process CLIP model for images and text."""

    provider: ClassVar[str] = "clip"

    model_name: str = "clip-ViT-B-32"
    device: str | None = None
    cache_ttl_seconds: float | None = None


EmbeddingConfig = (
    NoEmbeddingConfig
    | OpenAIConfig
    | GeminiConfig
    | OllamaConfig
    | SentenceTransformerConfig
    | ClipConfig
)

CONFIG_TYPES: dict[str, type] = {
    cls.provider: cls
    for cls in (
        NoEmbeddingConfig,
        OpenAIConfig,
        GeminiConfig,
        OllamaConfig,
        SentenceTransformerConfig,
        ClipConfig,
    )
}

_PROVIDER_ALIASES = {
    "local-text": "sentence-transformers",
    "sentence_transformers": "sentence-transformers",
    "local-image": "clip",
}

# Wire names accepted for each dataclass field.
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "model_name": ("modelName", "model_name", "model"),
    "api_key": ("apiKey", "api_key"),
    "api_url": ("apiUrl", "api_url"),
    "prompt_template": ("promptTemplate", "prompt_template"),
    "cache_ttl_seconds": ("cacheTTLSeconds", "cacheTtlSeconds", "cache_ttl_seconds"),
    "batch_size": ("batchSize", "batch_size"),
    "max_length": ("maxLength", "max_length"),
    "organization": ("organization",),
    "device": ("device",),
    "dimensions": ("dimensions",),
}


def parse_embedding_config(data: dict[str, Any] | None) -> EmbeddingConfig:
    """Build the configuration variant selected by ``data["provider"]``.

    Accepts the flat shape ``{"provider": "ollama", "modelName": ...}`` and
    the nested shape ``{"provider": "ollama", "ollama": {...}}``. Settings
    belonging to other providers are ignored.

    Raises:
        ConfigurationError: If the provider is unknown or a setting is invalid.
    """
    if not data:
        return NoEmbeddingConfig()
    if not isinstance(data, dict):
        raise ConfigurationError("Embedding config must be an object")

    raw_provider = str(data.get("provider") or "none")
    provider = _PROVIDER_ALIASES.get(raw_provider, raw_provider)
    config_cls = CONFIG_TYPES.get(provider)
    if config_cls is None:
        raise ConfigurationError(f"Unknown embedding provider: {raw_provider}")

    merged = dict(data)
    nested = data.get(raw_provider) or data.get(provider)
    if isinstance(nested, dict):
        merged.update(nested)

    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(config_cls):
        for alias in _FIELD_ALIASES.get(f.name, (f.name,)):
            if merged.get(alias) is not None:
                kwargs[f.name] = merged[alias]
                break

    config = config_cls(**_coerce(kwargs))
    _validate(config)
    return config


def _coerce(kwargs: dict[str, Any]) -> dict[str, Any]:
    try:
        for name in ("batch_size", "max_length", "dimensions"):
            if name in kwargs:
                kwargs[name] = int(kwargs[name])
        if "cache_ttl_seconds" in kwargs:
            kwargs["cache_ttl_seconds"] = float(kwargs["cache_ttl_seconds"])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid embedding config value: {e}") from None
    return kwargs


def _validate(config: EmbeddingConfig) -> None:
    ttl = config.cache_ttl_seconds
    if ttl is not None and ttl <= 0:
        raise ConfigurationError("cacheTTLSeconds must be positive")

    batch_size = getattr(config, "batch_size", 1)
    if batch_size < 1:
        raise ConfigurationError("batchSize must be at least 1")

    template = getattr(config, "prompt_template", None)
    if template is not None and "{text}" not in template:
        raise ConfigurationError("promptTemplate must contain a {text} placeholder")

    if isinstance(config, NoEmbeddingConfig) and config.dimensions < 0:
        raise ConfigurationError("dimensions must not be negative")


def _camel(name: str) -> str:
    if name == "cache_ttl_seconds":
        return "cacheTTLSeconds"
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def apply_prompt_template(template: str | None, text: str) -> str:
    """Substitute text into a ``{text}`` prompt template."""
    if not template:
        return text
    return template.replace("{text}", text)
