"""Factory for embedding providers.

Maps each configuration variant to its adapter with a single exhaustive
match, and picks sensible default configurations.
"""

import logging
import os
from typing import Any, assert_never

from . import EmbeddingProvider
from ..errors import ConfigurationError
from .config import (
    ClipConfig,
    EmbeddingConfig,
    GeminiConfig,
    NoEmbeddingConfig,
    OllamaConfig,
    OpenAIConfig,
    SentenceTransformerConfig,
)

logger = logging.getLogger(__name__)


def create_embedding_provider(config: EmbeddingConfig) -> EmbeddingProvider:
    """Create the adapter for an embedding configuration.

    Raises:
        ConfigurationError: If the configuration selects no provider.
    """
    match config:
        case NoEmbeddingConfig():
            raise ConfigurationError("No embedding provider configured")
        case OpenAIConfig():
            from .openai import OpenAIEmbeddings

            return OpenAIEmbeddings(config)
        case GeminiConfig():
            from .gemini import GeminiEmbeddings

            return GeminiEmbeddings(config)
        case OllamaConfig():
            from .ollama import OllamaEmbeddings

            return OllamaEmbeddings(config)
        case SentenceTransformerConfig():
            from .local import SentenceTransformerEmbeddings

            return SentenceTransformerEmbeddings(config)
        case ClipConfig():
            from .local import ClipEmbeddings

            return ClipEmbeddings(config)
        case _:
            assert_never(config)


def embedding_settings_from_env() -> dict[str, Any]:
    """Read the default embedding settings from VSET_EMBEDDING_* env vars.

    Environment variables:
        VSET_EMBEDDING_PROVIDER: Provider name (default "none").
        VSET_EMBEDDING_MODEL: Model identifier.
        VSET_EMBEDDING_API_URL: Endpoint override.
        VSET_EMBEDDING_API_KEY: Credential for hosted providers.

    Returns:
        Settings in the flat wire shape, unset values omitted.
    """
    settings = {
        "provider": os.getenv("VSET_EMBEDDING_PROVIDER", "none"),
        "modelName": os.getenv("VSET_EMBEDDING_MODEL"),
        "apiUrl": os.getenv("VSET_EMBEDDING_API_URL"),
        "apiKey": os.getenv("VSET_EMBEDDING_API_KEY"),
    }
    return {k: v for k, v in settings.items() if v}


async def detect_default_text_config() -> EmbeddingConfig:
    """Pick the best available text configuration.

    Prefers a reachable Ollama server, then the in-process
    sentence-transformers model.
    """
    from .ollama import DEFAULT_OLLAMA_URL, is_ollama_available

    if await is_ollama_available(DEFAULT_OLLAMA_URL):
        logger.info("Using Ollama at %s for text embeddings", DEFAULT_OLLAMA_URL)
        return OllamaConfig(api_url=DEFAULT_OLLAMA_URL)
    return SentenceTransformerConfig()


def default_image_config() -> EmbeddingConfig:
    """Default configuration for image embeddings."""
    return ClipConfig()
