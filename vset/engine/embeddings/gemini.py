"""Gemini embedding provider.

Calls the Google AI embedContent endpoint. The API key comes from the
configuration, the GEMINI_API_KEY environment variable, or a gemini.env
file in one of the secrets directories.
"""

import logging
import os
from pathlib import Path
from typing import Any

import httpx

from . import EmbeddingProvider
from ..errors import AuthError
from ._http import extract, post_json
from .config import GeminiConfig

logger = logging.getLogger(__name__)

# Configurable secrets paths (can be overridden via env)
_SECRETS_PATHS = os.getenv("SECRETS_PATHS", "~/.secrets").split(":")

_cached_api_key: str = ""


def _get_secrets_paths() -> list[Path]:
    """Get list of paths to search for secrets."""
    paths = []
    for p in _SECRETS_PATHS:
        expanded = Path(p.strip()).expanduser()
        paths.append(expanded)
    return paths


def _load_gemini_key() -> str:
    """Load Gemini API key from env or secrets files."""
    global _cached_api_key
    if _cached_api_key:
        return _cached_api_key

    env_key = os.getenv("GEMINI_API_KEY", "")
    if env_key:
        _cached_api_key = env_key
        return _cached_api_key

    for path in _get_secrets_paths():
        gemini_env = path / "gemini.env"
        if gemini_env.exists():
            for line in gemini_env.read_text().splitlines():
                if line.startswith("GEMINI_API_KEY="):
                    _cached_api_key = line.split("=", 1)[1].strip().strip('"').strip("'")
                    return _cached_api_key

    raise AuthError(
        "GEMINI_API_KEY not found in config, environment or secrets paths",
        provider="gemini",
    )


class GeminiEmbeddings(EmbeddingProvider):
    """Gemini embedding provider using the Google AI API.

    Uses the x-goog-api-key header (not URL query param) for security.
    """

    def __init__(
        self,
        config: GeminiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._url = f"{config.api_url.rstrip('/')}/models/{config.model_name}:embedContent"

    async def generate_embedding(self, data: str, *, is_image: bool = False) -> list[float]:
        """Generate embedding using Gemini API."""
        self.check_modality(is_image)
        api_key = self._config.api_key or _load_gemini_key()

        if len(data) > self.max_length:
            data = data[: self.max_length]

        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": api_key,
        }
        payload: dict[str, Any] = {"content": {"parts": [{"text": data}]}}
        if self.dimensions is not None:
            # The API returns its full default size unless told otherwise.
            payload["outputDimensionality"] = self.dimensions

        body = await post_json(
            self._url,
            payload,
            provider="gemini",
            headers=headers,
            transport=self._transport,
        )
        return extract(body, "gemini", "embedding", "values")

    @property
    def dimensions(self) -> int | None:
        return self._config.expected_dimensions

    @property
    def model_name(self) -> str:
        return self._config.model_name

    @property
    def max_length(self) -> int:
        """Maximum input text length in characters."""
        return self._config.max_length
