"""Embedding service façade.

Single entry point for turning input into an embedding: check the cache,
on a miss dispatch to the adapter for the configuration, validate and
cache the result. Adapter errors propagate unchanged and failures are
never cached, so a retry can succeed once the cause clears.
"""

import logging
from collections import OrderedDict
from collections.abc import Callable

from .cache import EmbeddingCache, make_cache_key
from .embeddings import EmbeddingProvider
from .embeddings.config import ClipConfig, EmbeddingConfig, NoEmbeddingConfig
from .embeddings.factory import create_embedding_provider, default_image_config
from .errors import ConfigurationError, TransportError, ValidationError
from .vector_math import validate_vector

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[EmbeddingConfig], EmbeddingProvider]

# Adapters kept for reuse before the least recently used one is dropped.
DEFAULT_MAX_PROVIDERS = 32


class EmbeddingService:
    """Cache-first embedding generation.

    Args:
        cache: Cache to use; a default EmbeddingCache if omitted.
        provider_factory: Builds an adapter for a configuration.
        default_ttl_seconds: TTL for configurations that set none. Falls
            back to the cache's own default when None.
        default_config: Configuration used when a caller supplies none.
        max_providers: Adapters kept for reuse. The least recently used
            one is dropped past this limit and rebuilt on its next use.
    """

    def __init__(
        self,
        cache: EmbeddingCache | None = None,
        provider_factory: ProviderFactory = create_embedding_provider,
        default_ttl_seconds: float | None = None,
        default_config: EmbeddingConfig | None = None,
        max_providers: int = DEFAULT_MAX_PROVIDERS,
    ) -> None:
        if max_providers < 1:
            raise ConfigurationError("max_providers must be at least 1")
        self._cache = cache if cache is not None else EmbeddingCache()
        self._factory = provider_factory
        self._default_ttl = default_ttl_seconds
        self._default_config: EmbeddingConfig = default_config or NoEmbeddingConfig()
        self._max_providers = max_providers
        self._providers: OrderedDict[EmbeddingConfig, EmbeddingProvider] = OrderedDict()

    @property
    def cache(self) -> EmbeddingCache:
        return self._cache

    @property
    def default_config(self) -> EmbeddingConfig:
        return self._default_config

    def resolve_config(
        self, config: EmbeddingConfig | None, *, is_image: bool = False
    ) -> EmbeddingConfig:
        """Return config, or the default configuration when it is None.

        Image requests without a config fall back to CLIP when the default
        configuration cannot embed images.
        """
        if config is not None:
            return config
        if is_image and not isinstance(self._default_config, ClipConfig):
            return default_image_config()
        return self._default_config

    def provider_for(self, config: EmbeddingConfig) -> EmbeddingProvider:
        """Return the adapter for config, creating it on first use."""
        provider = self._providers.get(config)
        if provider is not None:
            self._providers.move_to_end(config)
            return provider
        provider = self._factory(config)
        self._providers[config] = provider
        while len(self._providers) > self._max_providers:
            evicted, _ = self._providers.popitem(last=False)
            logger.debug("Dropped idle %s adapter", evicted.provider)
        return provider

    @property
    def provider_count(self) -> int:
        """Number of adapters currently kept for reuse."""
        return len(self._providers)

    def _ttl_for(self, config: EmbeddingConfig) -> float | None:
        if config.cache_ttl_seconds is not None:
            return config.cache_ttl_seconds
        return self._default_ttl

    def _prepare(self, config: EmbeddingConfig, is_image: bool) -> EmbeddingProvider:
        if not config.is_active:
            raise ConfigurationError("No embedding provider configured")
        provider = self.provider_for(config)
        provider.check_modality(is_image)
        return provider

    @staticmethod
    def _validate(
        vector: list[float], provider: EmbeddingProvider, config: EmbeddingConfig
    ) -> list[float]:
        try:
            return validate_vector(vector, provider.dimensions)
        except ValueError as e:
            logger.warning("Invalid embedding from %s/%s: %s", config.provider, provider.model_name, e)
            raise

    async def embed(
        self,
        data: str,
        config: EmbeddingConfig,
        *,
        is_image: bool = False,
    ) -> list[float]:
        """Return the embedding for data under config.

        Args:
            data: Text, or base64 image data when is_image is set.
            config: Active embedding configuration.
            is_image: Whether data is an encoded image.

        Returns:
            Embedding vector.

        Raises:
            ConfigurationError: If config selects no provider.
            ValidationError: If data is empty or the model output is invalid.
            UnsupportedInputError: If the model cannot take this modality.
            AuthError, TransportError: Propagated from the adapter.
        """
        if not data:
            raise ValidationError("No input data provided")
        provider = self._prepare(config, is_image)

        key = make_cache_key(data, config, is_image)
        entry = self._cache.get(key)
        if entry is not None:
            logger.debug("Embedding cache hit for %s/%s", config.provider, provider.model_name)
            return list(entry.vector)

        logger.debug("Embedding cache miss for %s/%s", config.provider, provider.model_name)
        vector = await provider.generate_embedding(data, is_image=is_image)
        vector = self._validate(vector, provider, config)
        self._cache.set(key, vector, self._ttl_for(config))
        return vector

    async def embed_batch(
        self,
        items: list[str],
        config: EmbeddingConfig,
        *,
        is_image: bool = False,
    ) -> list[list[float]]:
        """Embed several inputs, generating only the ones not cached.

        Returns:
            One vector per input, in input order.
        """
        if any(not item for item in items):
            raise ValidationError("Batch contains empty input")
        if not items:
            return []
        provider = self._prepare(config, is_image)

        results: list[list[float] | None] = [None] * len(items)
        keys = [make_cache_key(item, config, is_image) for item in items]
        missing: list[int] = []
        for i, key in enumerate(keys):
            entry = self._cache.get(key)
            if entry is None:
                missing.append(i)
            else:
                results[i] = list(entry.vector)

        if missing:
            generated = await provider.generate_batch(
                [items[i] for i in missing], is_image=is_image
            )
            if len(generated) != len(missing):
                raise TransportError(
                    f"{config.provider} returned {len(generated)} embeddings "
                    f"for {len(missing)} inputs",
                    provider=config.provider,
                )
            ttl = self._ttl_for(config)
            for i, vector in zip(missing, generated, strict=True):
                validated = self._validate(vector, provider, config)
                self._cache.set(keys[i], validated, ttl)
                results[i] = validated

        logger.info(
            "Embedded batch of %d (%d cached) with %s",
            len(items),
            len(items) - len(missing),
            config.provider,
        )
        return [r for r in results if r is not None]


_service: EmbeddingService | None = None


def get_embedding_service() -> EmbeddingService:
    """Get or create the singleton EmbeddingService."""
    global _service
    if _service is None:
        _service = EmbeddingService()
    return _service


def set_embedding_service(service: EmbeddingService | None) -> None:
    """Set the EmbeddingService instance (for testing)."""
    global _service
    _service = service
