"""Error taxonomy for the embedding engine.

Provider and cache errors propagate unchanged through the embedding
service; the combination engine turns a failed input into a skip.
"""


class VsetError(Exception):
    """Base exception for all embedding engine errors."""


class AuthError(VsetError):
    """Credential missing or rejected by the embedding backend."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class TransportError(VsetError):
    """Embedding backend unreachable or returned an unusable response.

    Raised when:
    - The request fails at the network level or times out
    - The backend answers with a non-success status
    - The response body does not contain an embedding
    - A local model cannot be loaded
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class UnsupportedInputError(VsetError):
    """Input modality (text or image) not supported by the selected model."""


class ValidationError(VsetError, ValueError):
    """Vector is empty, contains non-finite values, or text is not numeric."""


class DimensionMismatchError(VsetError, ValueError):
    """Two vectors (or a vector and a model) disagree on dimensionality."""

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ConfigurationError(VsetError, ValueError):
    """Embedding configuration is unknown, incomplete, or selects no provider."""
