"""Embedding provider abstraction layer.

Defines the EmbeddingProvider ABC that every backend adapter (OpenAI,
Gemini, Ollama, sentence-transformers, CLIP) implements. The embedding
service calls generate_embedding() without knowing the underlying model.
"""

from abc import ABC, abstractmethod

from ..errors import UnsupportedInputError


class EmbeddingProvider(ABC):
    """Abstract embedding generation interface.

    Capabilities are declared through ``supports_text`` and
    ``supports_image``; callers check them before dispatching.
    """

    supports_text: bool = True
    supports_image: bool = False

    @abstractmethod
    async def generate_embedding(self, data: str, *, is_image: bool = False) -> list[float]:
        """Generate an embedding vector for a single input.

        Args:
            data: UTF-8 text, or base64 image data when is_image is set.
            is_image: Whether data holds an encoded image.

        Returns:
            Embedding vector as a list of floats.

        Raises:
            AuthError: If credentials are missing or rejected.
            TransportError: If the backend fails or is unreachable.
            UnsupportedInputError: If the model cannot embed this modality.
        """
        ...

    async def generate_batch(
        self, items: list[str], *, is_image: bool = False
    ) -> list[list[float]]:
        """Generate embeddings for multiple inputs.

        Default implementation calls generate_embedding() sequentially.
        Providers with batch APIs should override for efficiency.
        """
        return [await self.generate_embedding(item, is_image=is_image) for item in items]

    def check_modality(self, is_image: bool) -> None:
        """Raise UnsupportedInputError if this provider cannot take the input."""
        if is_image and not self.supports_image:
            raise UnsupportedInputError(f"Model {self.model_name} does not support image input")
        if not is_image and not self.supports_text:
            raise UnsupportedInputError(f"Model {self.model_name} requires image input")

    @property
    @abstractmethod
    def dimensions(self) -> int | None:
        """Return the embedding vector dimensionality, if known."""
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier string."""
        ...
