"""Ollama embedding provider.

Talks to a local Ollama server's /api/embed endpoint. Also provides the
server availability check used to pick a default text configuration.
"""

import logging

import httpx

from . import EmbeddingProvider
from ._http import extract, post_json
from .config import OllamaConfig, apply_prompt_template

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaEmbeddings(EmbeddingProvider):
    """Embeddings from a model served by Ollama."""

    def __init__(
        self,
        config: OllamaConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._url = f"{config.api_url.rstrip('/')}/api/embed"

    async def generate_embedding(self, data: str, *, is_image: bool = False) -> list[float]:
        self.check_modality(is_image)
        prompt = apply_prompt_template(self._config.prompt_template, data)
        body = await post_json(
            self._url,
            {"model": self._config.model_name, "input": prompt},
            provider="ollama",
            transport=self._transport,
        )
        return extract(body, "ollama", "embeddings", 0)

    @property
    def dimensions(self) -> int | None:
        return self._config.expected_dimensions

    @property
    def model_name(self) -> str:
        return self._config.model_name


async def is_ollama_available(
    api_url: str = DEFAULT_OLLAMA_URL,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = 2.0,
) -> bool:
    """Check whether an Ollama server answers on api_url."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(f"{api_url.rstrip('/')}/api/tags")
    except httpx.HTTPError as e:
        logger.debug("Ollama not available at %s: %s", api_url, e)
        return False
    return response.is_success
