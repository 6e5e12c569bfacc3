"""Health check response model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class HealthResponse:
    """Health check response.

    Attributes:
        status: "healthy" or "unhealthy".
        version: Server version string.
        uptime_seconds: Seconds since server start.
        timestamp: Current server time.
        cache_size: Entries currently held by the embedding cache.
        default_provider: Provider used when a request names none.
    """

    status: str
    version: str
    uptime_seconds: float
    timestamp: datetime
    cache_size: int = 0
    default_provider: str = "none"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "status": self.status,
            "version": self.version,
            "uptime_seconds": self.uptime_seconds,
            "timestamp": self.timestamp.isoformat(),
            "cache_size": self.cache_size,
            "default_provider": self.default_provider,
        }
