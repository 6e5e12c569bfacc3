"""Tests for JSON-RPC request parsing."""

import pytest

from vset.engine.embeddings.config import OllamaConfig
from vset.engine.errors import ConfigurationError, ValidationError
from vset.engine.models import (
    MAX_BATCH_SIZE,
    AddVectorRequest,
    CombineRequest,
    ConfigureCacheRequest,
    EmbedBatchRequest,
    EmbedRequest,
    SearchVectorsRequest,
    parse_config_param,
    parse_vector_param,
)
from vset.engine.vector_math import CombinationMethod


class TestEmbedRequest:
    """Tests for EmbedRequest.from_params."""

    def test_text_alias(self) -> None:
        """The text alias is accepted for input."""
        request = EmbedRequest.from_params({"text": "hello"})
        assert request.input == "hello"
        assert request.is_image is False
        assert request.config is None

    def test_image_data_sets_modality(self) -> None:
        """imageData marks the request as an image."""
        request = EmbedRequest.from_params({"imageData": "aGVsbG8="})
        assert request.input == "aGVsbG8="
        assert request.is_image is True

    def test_config_parsed(self) -> None:
        """embeddingConfig becomes a typed config."""
        request = EmbedRequest.from_params(
            {"input": "x", "embeddingConfig": {"provider": "ollama"}}
        )
        assert request.config == OllamaConfig()

    def test_env_reference_not_expanded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Request configs are taken literally; server env stays private."""
        monkeypatch.setenv("SECRET_KEY", "do-not-leak")
        config = parse_config_param(
            {"embeddingConfig": {"provider": "openai", "apiKey": "${SECRET_KEY}"}}
        )
        assert config is not None
        assert config.api_key == "${SECRET_KEY}"  # type: ignore[union-attr]

    def test_config_must_be_object(self) -> None:
        """A non-object config is rejected."""
        with pytest.raises(ValidationError):
            parse_config_param({"embeddingConfig": "openai"})

    def test_unknown_provider(self) -> None:
        """Unknown providers raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            EmbedRequest.from_params({"input": "x", "config": {"provider": "cohere"}})


class TestBatchAndCombine:
    """Tests for EmbedBatchRequest and CombineRequest."""

    def test_batch_limit(self) -> None:
        """Batches over the maximum size are rejected."""
        with pytest.raises(ValidationError, match="maximum batch size"):
            EmbedBatchRequest.from_params({"inputs": ["x"] * (MAX_BATCH_SIZE + 1)})

    def test_batch_requires_strings(self) -> None:
        """Every batch item must be a string."""
        with pytest.raises(ValidationError):
            EmbedBatchRequest.from_params({"inputs": ["x", 1]})

    def test_combine_fields(self) -> None:
        """Method, normalize and powerFactor are parsed."""
        request = CombineRequest.from_params(
            {
                "inputs": [{"id": "a", "vector": "cats", "weight": 2}],
                "method": "component-max",
                "normalize": True,
                "powerFactor": 3,
            }
        )
        assert request.inputs[0].weight == 2.0
        assert request.method is CombinationMethod.COMPONENT_MAX
        assert request.normalize is True
        assert request.power_factor == 3.0

    def test_combine_requires_inputs(self) -> None:
        """An empty inputs list is rejected."""
        with pytest.raises(ValidationError):
            CombineRequest.from_params({"inputs": []})

    def test_combine_bad_weight(self) -> None:
        """A non-numeric weight names the failing input."""
        with pytest.raises(ValidationError, match=r"inputs\[0\]"):
            CombineRequest.from_params({"inputs": [{"vector": "x", "weight": "heavy"}]})

    def test_combine_non_finite_weight(self) -> None:
        """Infinite and NaN weights are rejected."""
        for weight in ("inf", "-inf", "nan"):
            with pytest.raises(ValidationError, match="finite"):
                CombineRequest.from_params({"inputs": [{"vector": "x", "weight": weight}]})

    def test_power_factor_positive(self) -> None:
        """powerFactor must be above zero."""
        with pytest.raises(ValidationError):
            CombineRequest.from_params({"inputs": [{"vector": "x"}], "powerFactor": 0})

    def test_power_factor_finite(self) -> None:
        """An infinite or NaN power factor is rejected."""
        for value in ("inf", "nan"):
            with pytest.raises(ValidationError, match="finite"):
                CombineRequest.from_params({"inputs": [{"vector": "x"}], "powerFactor": value})


class TestStoreRequests:
    """Tests for cache and vector store requests."""

    def test_vector_param_forms(self) -> None:
        """Vectors arrive as text or arrays."""
        assert parse_vector_param("1, 2") == [1.0, 2.0]
        assert parse_vector_param([1, 2]) == [1.0, 2.0]
        with pytest.raises(ValidationError):
            parse_vector_param({"x": 1})

    def test_configure_cache_ttl(self) -> None:
        """TTL is parsed and must not be negative."""
        assert ConfigureCacheRequest.from_params({"ttlSeconds": "30"}).ttl_seconds == 30.0
        with pytest.raises(ValidationError):
            ConfigureCacheRequest.from_params({"ttlSeconds": -1})

    def test_add_vector_element_alias(self) -> None:
        """The element alias is accepted for key and trimmed."""
        request = AddVectorRequest.from_params({"element": " doc-1 ", "vector": [1, 0]})
        assert request.key == "doc-1"
        assert request.source.vector == [1.0, 0.0]

    def test_add_vector_attributes_must_be_object(self) -> None:
        """Attributes must be an object."""
        with pytest.raises(ValidationError):
            AddVectorRequest.from_params({"key": "a", "vector": [1], "attributes": [1]})

    def test_search_count_clamped(self) -> None:
        """count is clamped to 1..100."""
        assert SearchVectorsRequest.from_params({"vector": [1], "count": 1000}).count == 100
        assert SearchVectorsRequest.from_params({"vector": [1], "count": 0}).count == 1

    def test_search_from_inputs(self) -> None:
        """inputs select a combined source."""
        request = SearchVectorsRequest.from_params({"inputs": [{"vector": "cats"}]})
        assert request.source.combine is not None
        assert request.source.vector is None
