"""In-process embedding models.

Text models and CLIP run through sentence-transformers inside this
process. Loading a model is slow and memory hungry, so ``ModelLoader``
keeps one instance per model name and an in-flight registry of pending
loads: concurrent callers asking for a model that is still loading await
the same future instead of loading it twice. A failed load is not
remembered, so a later call retries.
"""

import asyncio
import base64
import binascii
import io
import logging
import os
import time
from collections.abc import Callable
from typing import Any

from . import EmbeddingProvider
from ..errors import TransportError, ValidationError
from .config import ClipConfig, SentenceTransformerConfig, apply_prompt_template

# Tokenizers fork workers that misbehave under asyncio; set before import.
os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")

logger = logging.getLogger(__name__)

ModelLoadFn = Callable[[str, str | None], Any]


def load_sentence_transformer(model_name: str, device: str | None = None) -> Any:
    """Load a sentence-transformers model (blocking)."""
    try:
        from sentence_transformers import SentenceTransformer
    except ImportError as e:
        raise ImportError(
            "sentence-transformers not installed. "
            "Install with: pip install 'vectorset-embeddings[local]'"
        ) from e

    start = time.perf_counter()
    model = SentenceTransformer(model_name, device=device)
    logger.info(
        "Loaded model %s on %s in %.2fs",
        model_name,
        model.device,
        time.perf_counter() - start,
    )
    return model


class ModelLoader:
    """Memoized, deduplicated model loading.

    Args:
        load_fn: Blocking loader called in a worker thread with
            (model_name, device).
    """

    def __init__(self, load_fn: ModelLoadFn = load_sentence_transformer) -> None:
        self._load_fn = load_fn
        self._models: dict[str, Any] = {}
        self._in_flight: dict[str, asyncio.Task[Any]] = {}

    @staticmethod
    def _key(model_name: str, device: str | None) -> str:
        return f"{model_name}@{device or 'auto'}"

    def is_loaded(self, model_name: str, device: str | None = None) -> bool:
        return self._key(model_name, device) in self._models

    def is_loading(self, model_name: str, device: str | None = None) -> bool:
        return self._key(model_name, device) in self._in_flight

    async def get(self, model_name: str, device: str | None = None) -> Any:
        """Return the loaded model, loading it once if needed.

        The load runs in its own task, so a cancelled caller stops waiting
        without cancelling the load for the others.

        Raises:
            TransportError: If the model cannot be loaded.
        """
        key = self._key(model_name, device)
        model = self._models.get(key)
        if model is not None:
            return model

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._load(key, model_name, device))
            # Mark a failure retrieved even if every caller has gone.
            task.add_done_callback(lambda t: t.cancelled() or t.exception())
            self._in_flight[key] = task
        return await asyncio.shield(task)

    async def _load(self, key: str, model_name: str, device: str | None) -> Any:
        try:
            logger.info("Loading embedding model %s", model_name)
            model = await asyncio.to_thread(self._load_fn, model_name, device)
        except Exception as e:
            raise TransportError(
                f"Failed to load model {model_name}: {e}", provider="local"
            ) from e
        else:
            self._models[key] = model
            return model
        finally:
            self._in_flight.pop(key, None)

    def unload(self, model_name: str, device: str | None = None) -> bool:
        """Forget a loaded model. Returns True if it was loaded."""
        return self._models.pop(self._key(model_name, device), None) is not None


_loader: ModelLoader | None = None


def get_model_loader() -> ModelLoader:
    """Get or create the shared ModelLoader."""
    global _loader
    if _loader is None:
        _loader = ModelLoader()
    return _loader


def set_model_loader(loader: ModelLoader | None) -> None:
    """Set the shared ModelLoader (for testing)."""
    global _loader
    _loader = loader


def _to_floats(vector: Any) -> list[float]:
    values = vector.tolist() if hasattr(vector, "tolist") else list(vector)
    return [float(v) for v in values]


async def _encode(model: Any, payload: Any, provider: str, **kwargs: Any) -> Any:
    try:
        return await asyncio.to_thread(model.encode, payload, **kwargs)
    except Exception as e:
        raise TransportError(f"{provider} encoding failed: {e}", provider=provider) from e


class SentenceTransformerEmbeddings(EmbeddingProvider):
    """Text embeddings from a local sentence-transformers model."""

    def __init__(
        self,
        config: SentenceTransformerConfig,
        loader: ModelLoader | None = None,
    ) -> None:
        self._config = config
        self._loader = loader or get_model_loader()

    async def generate_embedding(self, data: str, *, is_image: bool = False) -> list[float]:
        self.check_modality(is_image)
        model = await self._loader.get(self._config.model_name, self._config.device)
        text = apply_prompt_template(self._config.prompt_template, data)
        vector = await _encode(model, text, self._config.provider, convert_to_numpy=True)
        return _to_floats(vector)

    async def generate_batch(
        self, items: list[str], *, is_image: bool = False
    ) -> list[list[float]]:
        self.check_modality(is_image)
        model = await self._loader.get(self._config.model_name, self._config.device)
        texts = [apply_prompt_template(self._config.prompt_template, t) for t in items]
        matrix = await _encode(
            model,
            texts,
            self._config.provider,
            batch_size=self._config.batch_size,
            convert_to_numpy=True,
        )
        return [_to_floats(row) for row in matrix]

    @property
    def dimensions(self) -> int | None:
        return self._config.expected_dimensions

    @property
    def model_name(self) -> str:
        return self._config.model_name


def decode_image(data: str) -> Any:
    """Decode base64 or data-URL image data into an RGB PIL image.

    Raises:
        ValidationError: If the data is not valid base64 or not an image.
    """
    from PIL import Image, UnidentifiedImageError

    payload = data.strip()
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image data is not valid base64") from None
    try:
        with Image.open(io.BytesIO(raw)) as image:
            return image.convert("RGB")
    except UnidentifiedImageError:
        raise ValidationError("Image data is not a recognised image format") from None


class ClipEmbeddings(EmbeddingProvider):
    """CLIP embeddings: images and text share one vector space."""

    supports_image = True

    def __init__(self, config: ClipConfig, loader: ModelLoader | None = None) -> None:
        self._config = config
        self._loader = loader or get_model_loader()

    async def generate_embedding(self, data: str, *, is_image: bool = False) -> list[float]:
        model = await self._loader.get(self._config.model_name, self._config.device)
        payload = decode_image(data) if is_image else data
        vector = await _encode(model, payload, self._config.provider, convert_to_numpy=True)
        return _to_floats(vector)

    @property
    def dimensions(self) -> int | None:
        return self._config.expected_dimensions

    @property
    def model_name(self) -> str:
        return self._config.model_name
