"""OpenAI embedding provider."""

import logging
import os

import httpx

from . import EmbeddingProvider
from ..errors import AuthError, TransportError
from ._http import extract, post_json
from .config import OpenAIConfig

logger = logging.getLogger(__name__)


class OpenAIEmbeddings(EmbeddingProvider):
    """OpenAI /embeddings endpoint.

    The API key is taken from the configuration or OPENAI_API_KEY. Batch
    requests are split into chunks of ``config.batch_size`` inputs.
    """

    def __init__(
        self,
        config: OpenAIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._url = f"{config.api_url.rstrip('/')}/embeddings"

    def _headers(self) -> dict[str, str]:
        api_key = self._config.api_key or os.getenv("OPENAI_API_KEY", "")
        if not api_key:
            raise AuthError(
                "OpenAI API key is missing. Set apiKey or OPENAI_API_KEY.",
                provider="openai",
            )
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        organization = self._config.organization or os.getenv("OPENAI_ORG_ID")
        if organization:
            headers["OpenAI-Organization"] = organization
        return headers

    async def _request(self, payload_input: str | list[str]) -> list[list[float]]:
        body = await post_json(
            self._url,
            {
                "input": payload_input,
                "model": self._config.model_name,
                "encoding_format": "float",
            },
            provider="openai",
            headers=self._headers(),
            transport=self._transport,
        )
        items = extract(body, "openai", "data")
        if not isinstance(items, list):
            raise TransportError("openai response data is not a list", provider="openai")
        # Results carry an index; order by it rather than trusting response order.
        ordered = sorted(items, key=lambda item: item.get("index", 0) if isinstance(item, dict) else 0)
        return [extract(item, "openai", "embedding") for item in ordered]

    async def generate_embedding(self, data: str, *, is_image: bool = False) -> list[float]:
        self.check_modality(is_image)
        vectors = await self._request(data)
        if not vectors:
            raise TransportError("openai returned no embeddings", provider="openai")
        return vectors[0]

    async def generate_batch(
        self, items: list[str], *, is_image: bool = False
    ) -> list[list[float]]:
        self.check_modality(is_image)
        batch_size = self._config.batch_size
        embeddings: list[list[float]] = []
        for start in range(0, len(items), batch_size):
            batch = items[start : start + batch_size]
            vectors = await self._request(batch)
            if len(vectors) != len(batch):
                raise TransportError(
                    f"openai returned {len(vectors)} embeddings for {len(batch)} inputs",
                    provider="openai",
                )
            embeddings.extend(vectors)
        logger.debug("OpenAI batch embedded %d inputs", len(items))
        return embeddings

    @property
    def dimensions(self) -> int | None:
        return self._config.expected_dimensions

    @property
    def model_name(self) -> str:
        return self._config.model_name
