"""In-process embedding cache with time-based expiry.

Entries are looked up by a key derived from the raw input and the active
embedding configuration. Expiry is lazy: a stale entry reads as absent
but stays in memory until a sweep removes it. Sweeps run when the entry
count passes ``sweep_threshold`` and remove at most ``sweep_batch``
expired entries, oldest first. Live entries are only evicted once the
cache grows past ``max_entries``.

There is no locking. Two concurrent misses for the same key both
generate an embedding and the last ``set`` wins, which is harmless
because embeddings are deterministic for identical input and config.
"""

import hashlib
import json
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .embeddings.config import EmbeddingConfig

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_SWEEP_THRESHOLD = 100
DEFAULT_SWEEP_BATCH = 20
DEFAULT_MAX_ENTRIES = 1000

_KEY_PREFIX_CHARS = 50
_KEY_DIGEST_CHARS = 16


def make_cache_key(data: str, config: EmbeddingConfig, is_image: bool = False) -> str:
    """Derive the cache key for an embedding request.

    The key combines a prefix of the input, its length, the modality, a
    truncated SHA-256 of the full input, and the canonical JSON of the
    configuration (credentials excluded).
    """
    modality = "image" if is_image else "text"
    digest = hashlib.sha256(data.encode("utf-8")).hexdigest()[:_KEY_DIGEST_CHARS]
    config_str = json.dumps(config.cache_identity(), sort_keys=True, separators=(",", ":"))
    return f"{data[:_KEY_PREFIX_CHARS]}_{len(data)}_{modality}_{digest}_{config_str}"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cached embedding vector.

    Attributes:
        vector: The embedding.
        created_at: Clock reading when the entry was stored.
        ttl_seconds: Lifetime of this entry.
    """

    vector: tuple[float, ...]
    created_at: float
    ttl_seconds: float

    def is_fresh(self, now: float) -> bool:
        return now - self.created_at < self.ttl_seconds


@dataclass(slots=True)
class CacheStats:
    """Counters describing cache state."""

    size: int
    hits: int
    misses: int
    expired: int
    evictions: int
    enabled: bool
    default_ttl_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "hits": self.hits,
            "misses": self.misses,
            "expired": self.expired,
            "evictions": self.evictions,
            "enabled": self.enabled,
            "defaultTtlSeconds": self.default_ttl_seconds,
        }


class EmbeddingCache:
    """Process-lifetime map of cache key to embedding.

    Args:
        clock: Returns the current time in seconds. Injectable for tests.
        default_ttl_seconds: TTL used when ``set`` is called without one.
        sweep_threshold: Entry count above which expired entries are swept.
        sweep_batch: Maximum expired entries removed per sweep.
        max_entries: Hard limit; the oldest entries, live or not, are
            evicted beyond it.
        enabled: When False, ``get`` always misses and ``set`` is a no-op.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD,
        sweep_batch: int = DEFAULT_SWEEP_BATCH,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        enabled: bool = True,
    ) -> None:
        if max_entries < sweep_threshold:
            raise ValueError("max_entries must be >= sweep_threshold")
        self._clock = clock
        self._default_ttl = float(default_ttl_seconds)
        self._sweep_threshold = sweep_threshold
        self._sweep_batch = sweep_batch
        self._max_entries = max_entries
        self._enabled = enabled
        # Insertion order doubles as age order: set() re-inserts on refresh.
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._expired = 0
        self._evictions = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def default_ttl_seconds(self) -> float:
        return self._default_ttl

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> CacheEntry | None:
        """Return the fresh entry for key, or None if absent or expired."""
        if not self._enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if not entry.is_fresh(self._clock()):
            self._expired += 1
            self._misses += 1
            return None

        self._hits += 1
        return entry

    def set(
        self,
        key: str,
        vector: Sequence[float],
        ttl_seconds: float | None = None,
    ) -> None:
        """Store a vector, replacing any previous entry for key."""
        if not self._enabled:
            return

        ttl = self._default_ttl if ttl_seconds is None else float(ttl_seconds)
        if ttl <= 0:
            return

        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            vector=tuple(vector),
            created_at=self._clock(),
            ttl_seconds=ttl,
        )

        if len(self._entries) > self._sweep_threshold:
            self._sweep()
        if len(self._entries) > self._max_entries:
            self._evict_oldest()

    def _sweep(self) -> None:
        now = self._clock()
        stale = sorted(
            (entry.created_at, key)
            for key, entry in self._entries.items()
            if not entry.is_fresh(now)
        )[: self._sweep_batch]
        for _, key in stale:
            del self._entries[key]
        self._evictions += len(stale)
        if stale:
            logger.debug("Swept %d expired embedding cache entries", len(stale))

    def _evict_oldest(self) -> None:
        overflow = len(self._entries) - self._max_entries
        for key in list(self._entries)[:overflow]:
            del self._entries[key]
        self._evictions += overflow
        logger.warning(
            "Embedding cache exceeded %d entries, evicted %d oldest",
            self._max_entries,
            overflow,
        )

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
        for key in stale:
            del self._entries[key]
        self._evictions += len(stale)
        return len(stale)

    def clear(self) -> int:
        """Drop all entries and return how many there were."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def configure(
        self,
        enabled: bool | None = None,
        default_ttl_seconds: float | None = None,
    ) -> None:
        """Change cache behaviour at runtime."""
        if enabled is not None:
            self._enabled = enabled
            if not enabled:
                self._entries.clear()
        if default_ttl_seconds is not None:
            if default_ttl_seconds <= 0:
                raise ValueError("default_ttl_seconds must be positive")
            self._default_ttl = float(default_ttl_seconds)

    def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            expired=self._expired,
            evictions=self._evictions,
            enabled=self._enabled,
            default_ttl_seconds=self._default_ttl,
        )
