"""Factory for vector store backends.

Provides singleton management and test injection for VectorStore instances.
"""

import os

from ..errors import ConfigurationError
from . import VectorStore

_store: VectorStore | None = None


def create_vector_store() -> VectorStore:
    """Create a VectorStore based on the VECTOR_BACKEND env var.

    Supported values:
        - "memory" (default): in-process store.
    """
    backend = os.getenv("VECTOR_BACKEND", "memory")
    match backend:
        case "memory":
            from .memory import MemoryStore

            return MemoryStore()
        case _:
            raise ConfigurationError(f"Unknown vector backend: {backend}")


def get_vector_store() -> VectorStore:
    """Get or create the singleton VectorStore."""
    global _store
    if _store is None:
        _store = create_vector_store()
    return _store


def set_vector_store(store: VectorStore | None) -> None:
    """Set the VectorStore instance (for testing)."""
    global _store
    _store = store
