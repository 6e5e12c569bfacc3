"""Tests for the in-memory vector store and backend factory."""

import pytest

from vset.engine.errors import ConfigurationError, DimensionMismatchError, ValidationError
from vset.engine.vectordb.factory import (
    create_vector_store,
    get_vector_store,
    set_vector_store,
)
from vset.engine.vectordb.memory import MemoryStore


class TestMemoryStore:
    """Tests for MemoryStore."""

    @pytest.mark.asyncio
    async def test_add_and_search_ranked(self) -> None:
        """Results are ranked by cosine similarity."""
        store = MemoryStore()
        await store.add("x", [1.0, 0.0], {"label": "x-axis"})
        await store.add("y", [0.0, 1.0])
        await store.add("xy", [1.0, 1.0])

        results = await store.search([1.0, 0.1], count=2)

        assert [r.key for r in results] == ["x", "xy"]
        assert results[0].attributes == {"label": "x-axis"}
        assert results[0].score > results[1].score

    @pytest.mark.asyncio
    async def test_add_reports_new_or_replaced(self) -> None:
        """add() tells new keys from replaced ones."""
        store = MemoryStore()
        assert await store.add("a", [1.0, 0.0]) is True
        assert await store.add("a", [0.0, 1.0]) is False
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_dimension_fixed_by_first_add(self) -> None:
        """The first vector fixes the store dimension."""
        store = MemoryStore()
        assert await store.dimension() is None
        await store.add("a", [1.0, 0.0, 0.0])
        assert await store.dimension() == 3
        with pytest.raises(DimensionMismatchError):
            await store.add("b", [1.0, 0.0])
        with pytest.raises(DimensionMismatchError):
            await store.search([1.0, 0.0])

    @pytest.mark.asyncio
    async def test_empty_store_search(self) -> None:
        """Searching an empty store finds nothing."""
        assert await MemoryStore().search([1.0, 2.0]) == []

    @pytest.mark.asyncio
    async def test_invalid_input(self) -> None:
        """Empty keys and bad vectors are rejected."""
        store = MemoryStore()
        with pytest.raises(ValidationError):
            await store.add("", [1.0])
        with pytest.raises(ValidationError):
            await store.add("a", [float("nan")])
        with pytest.raises(ValidationError):
            await store.search([1.0], count=0)

    @pytest.mark.asyncio
    async def test_remove(self) -> None:
        """remove() reports whether the key existed."""
        store = MemoryStore()
        await store.add("a", [1.0])
        assert await store.remove("a") is True
        assert await store.remove("a") is False
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_stored_vector_is_copied(self) -> None:
        """Mutating the caller's list does not change the store."""
        store = MemoryStore()
        vec = [1.0, 0.0]
        await store.add("a", vec)
        vec[0] = -1.0
        results = await store.search([1.0, 0.0])
        assert results[0].score == pytest.approx(1.0)

    def test_result_to_dict(self) -> None:
        """Results serialize with empty attributes by default."""
        from vset.engine.vectordb import VectorResult

        assert VectorResult("a", 0.5).to_dict() == {"key": "a", "score": 0.5, "attributes": {}}


class TestVectorStoreFactory:
    """Tests for create_vector_store and the singleton."""

    @pytest.fixture(autouse=True)
    def reset_singleton(self):
        set_vector_store(None)
        yield
        set_vector_store(None)

    def test_default_is_memory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The in-memory store is the default backend."""
        monkeypatch.delenv("VECTOR_BACKEND", raising=False)
        assert isinstance(create_vector_store(), MemoryStore)

    def test_unknown_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unknown backends raise ConfigurationError."""
        monkeypatch.setenv("VECTOR_BACKEND", "redis")
        with pytest.raises(ConfigurationError, match="Unknown vector backend: redis"):
            create_vector_store()

    def test_singleton(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """get_vector_store returns one shared instance."""
        monkeypatch.delenv("VECTOR_BACKEND", raising=False)
        assert get_vector_store() is get_vector_store()

    def test_injection(self) -> None:
        """set_vector_store replaces the shared instance."""
        store = MemoryStore()
        set_vector_store(store)
        assert get_vector_store() is store
