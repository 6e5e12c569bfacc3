"""Embedding engine: providers, cache, combination and similarity."""

from .cache import CacheEntry, EmbeddingCache, make_cache_key
from .combination_service import (
    CombinationResult,
    CombinationService,
    VectorInput,
    get_combination_service,
    set_combination_service,
)
from .dispatcher import VsetDispatcher, get_dispatcher, register_methods
from .embedding_service import EmbeddingService, get_embedding_service, set_embedding_service
from .embeddings.config import EmbeddingConfig, parse_embedding_config
from .errors import (
    AuthError,
    ConfigurationError,
    DimensionMismatchError,
    TransportError,
    UnsupportedInputError,
    ValidationError,
    VsetError,
)
from .scheduler import DebouncedCombiner
from .similarity import compare_vectors, cosine_similarity, similarity_matrix
from .vector_math import CombinationMethod, combine_vectors, normalize_vector

__all__ = [
    # Cache
    "CacheEntry",
    "EmbeddingCache",
    "make_cache_key",
    # Services
    "EmbeddingService",
    "get_embedding_service",
    "set_embedding_service",
    "CombinationService",
    "CombinationResult",
    "VectorInput",
    "get_combination_service",
    "set_combination_service",
    "DebouncedCombiner",
    # Configuration
    "EmbeddingConfig",
    "parse_embedding_config",
    # Dispatcher
    "VsetDispatcher",
    "get_dispatcher",
    "register_methods",
    # Math
    "CombinationMethod",
    "combine_vectors",
    "normalize_vector",
    "cosine_similarity",
    "similarity_matrix",
    "compare_vectors",
    # Errors
    "VsetError",
    "AuthError",
    "TransportError",
    "UnsupportedInputError",
    "ValidationError",
    "DimensionMismatchError",
    "ConfigurationError",
]
