"""JSON-RPC method dispatcher for vset.

Routes incoming JSON-RPC requests to method handlers and maps engine
errors to JSON-RPC error codes.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..models.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PROVIDER_AUTH_FAILED,
    PROVIDER_UNAVAILABLE,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
)
from .combination_service import get_combination_service
from .embedding_service import get_embedding_service
from .embeddings.config import MODEL_REGISTRY
from .errors import AuthError, TransportError, UnsupportedInputError, ValidationError
from .models import (
    AddVectorRequest,
    CombineRequest,
    CompareVectorsRequest,
    ConfigureCacheRequest,
    EmbedBatchRequest,
    EmbedRequest,
    SearchVectorsRequest,
    SimilarityRequest,
    StoreVectorSource,
)
from .similarity import compare_vectors, similarity_matrix
from .vector_math import CombinationMethod, describe_method
from .vectordb.factory import get_vector_store

logger = logging.getLogger(__name__)

# Type alias for method handlers
MethodHandler = Callable[[dict[str, Any], str], Awaitable[dict[str, Any]]]


class VsetDispatcher:
    """Dispatches JSON-RPC requests to method handlers."""

    def __init__(self) -> None:
        self._methods: dict[str, MethodHandler] = {}

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    def register(self, method: str, handler: MethodHandler) -> None:
        """Register a method handler.

        Args:
            method: Method name (e.g., "vset.combine").
            handler: Async function to handle the method.
        """
        self._methods[method] = handler

    async def dispatch(
        self,
        request: JsonRpcRequest,
        agent_id: str,
    ) -> JsonRpcResponse:
        """Dispatch a JSON-RPC request to the appropriate handler.

        Args:
            request: Parsed JSON-RPC request.
            agent_id: Authenticated caller ID.

        Returns:
            JSON-RPC response with result or error.
        """
        validation_error = request.validate()
        if validation_error:
            return JsonRpcResponse.failure(request.id, validation_error)

        handler = self._methods.get(request.method)
        if not handler:
            return JsonRpcResponse.failure(
                request.id,
                JsonRpcError(
                    code=METHOD_NOT_FOUND,
                    message=f"Method not found: {request.method}",
                    data={"method": request.method, "available": self.methods},
                ),
            )

        try:
            result = await handler(request.params, agent_id)
            return JsonRpcResponse.success(request.id, result)
        except AuthError as e:
            logger.warning("%s: provider auth failed: %s", request.method, e)
            return JsonRpcResponse.failure(
                request.id,
                JsonRpcError(
                    code=PROVIDER_AUTH_FAILED,
                    message=str(e),
                    data={"provider": e.provider},
                ),
            )
        except TransportError as e:
            logger.warning("%s: provider unavailable: %s", request.method, e)
            return JsonRpcResponse.failure(
                request.id,
                JsonRpcError(
                    code=PROVIDER_UNAVAILABLE,
                    message=str(e),
                    data={"provider": e.provider, "statusCode": e.status_code},
                ),
            )
        except (ValueError, UnsupportedInputError) as e:
            return JsonRpcResponse.failure(
                request.id,
                JsonRpcError(
                    code=INVALID_PARAMS,
                    message=str(e),
                    data={"type": type(e).__name__},
                ),
            )
        except Exception as e:
            logger.exception("%s failed", request.method)
            return JsonRpcResponse.failure(
                request.id,
                JsonRpcError(
                    code=INTERNAL_ERROR,
                    message=str(e),
                    data={"type": type(e).__name__},
                ),
            )


# Global dispatcher instance
_dispatcher: VsetDispatcher | None = None


def get_dispatcher() -> VsetDispatcher:
    """Get the global dispatcher instance."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = VsetDispatcher()
    return _dispatcher


async def _handle_embed(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.embed: one text or image to one vector."""
    request = EmbedRequest.from_params(params)
    service = get_embedding_service()
    config = service.resolve_config(request.config, is_image=request.is_image)
    vector = await service.embed(request.input, config, is_image=request.is_image)
    return {
        "vector": vector,
        "dimensions": len(vector),
        "provider": config.provider,
        "model": getattr(config, "model_name", None),
    }


async def _handle_embed_batch(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.embedBatch."""
    request = EmbedBatchRequest.from_params(params)
    service = get_embedding_service()
    config = service.resolve_config(request.config, is_image=request.is_image)
    vectors = await service.embed_batch(request.inputs, config, is_image=request.is_image)
    return {
        "vectors": vectors,
        "count": len(vectors),
        "dimensions": len(vectors[0]) if vectors else 0,
        "provider": config.provider,
    }


async def _handle_combine(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.combine.

    Returns a null vector, not an error, when no input resolved.
    """
    request = CombineRequest.from_params(params)
    config = get_embedding_service().resolve_config(request.config)
    service = get_combination_service()
    result = await service.combine(
        request.inputs,
        config,
        normalize=request.normalize,
        method=request.method,
        power_factor=request.power_factor,
    )
    if result is None:
        return {
            "vector": None,
            "dimensions": 0,
            "method": (request.method or service.default_method).value,
            "message": "No valid vectors to combine",
        }
    return result.to_dict()


async def _handle_similarity(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.similarity: pairwise cosine similarity matrix."""
    request = SimilarityRequest.from_params(params)
    matrix = similarity_matrix(request.vectors)
    response: dict[str, Any] = {"matrix": matrix}
    if len(request.vectors) == 2:
        response["similarity"] = matrix[0][1]
    return response


async def _handle_compare_vectors(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.compareVectors."""
    request = CompareVectorsRequest.from_params(params)
    return compare_vectors(request.vector1, request.vector2)


async def _handle_list_models(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.listModels: known models, methods and the default config."""
    provider = params.get("provider")
    if provider is not None and provider not in MODEL_REGISTRY:
        raise ValidationError(f"Unknown embedding provider: {provider}")
    providers = [provider] if provider else list(MODEL_REGISTRY)
    return {
        "providers": {
            name: [info.to_dict() for info in MODEL_REGISTRY[name].values()]
            for name in providers
        },
        "methods": [
            {"value": method.value, "description": describe_method(method)}
            for method in CombinationMethod
        ],
        "defaultConfig": get_embedding_service().default_config.to_dict(),
    }


async def _handle_get_cache_stats(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.getCacheStats."""
    return get_embedding_service().cache.stats().to_dict()


async def _handle_clear_cache(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.clearCache; expiredOnly keeps live entries."""
    cache = get_embedding_service().cache
    if params.get("expiredOnly", params.get("expired_only", False)):
        removed = cache.purge_expired()
    else:
        removed = cache.clear()
    logger.info("Cache cleared by %s: %d entries removed", agent_id, removed)
    return {"removed": removed, "size": len(cache)}


async def _handle_configure_cache(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.configureCache."""
    request = ConfigureCacheRequest.from_params(params)
    cache = get_embedding_service().cache
    cache.configure(enabled=request.enabled, default_ttl_seconds=request.ttl_seconds)
    logger.info(
        "Cache reconfigured by %s: enabled=%s ttl=%s",
        agent_id,
        cache.enabled,
        cache.default_ttl_seconds,
    )
    return cache.stats().to_dict()


async def _resolve_source(source: StoreVectorSource) -> list[float]:
    if source.vector is not None:
        return source.vector
    request = source.combine
    if request is None:
        raise ValidationError("Either vector or inputs is required")
    result = await get_combination_service().combine(
        request.inputs,
        get_embedding_service().resolve_config(request.config),
        normalize=request.normalize,
        method=request.method,
        power_factor=request.power_factor,
    )
    if result is None:
        raise ValidationError("No valid vectors to combine")
    return result.vector


async def _handle_add_vector(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.addVector: store a literal or combined vector under a key."""
    request = AddVectorRequest.from_params(params)
    vector = await _resolve_source(request.source)
    store = get_vector_store()
    added = await store.add(request.key, vector, request.attributes)
    return {
        "key": request.key,
        "added": added,
        "dimensions": len(vector),
        "count": await store.count(),
    }


async def _handle_search_vectors(params: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Handle vset.searchVectors: rank stored vectors by cosine similarity."""
    request = SearchVectorsRequest.from_params(params)
    vector = await _resolve_source(request.source)
    results = await get_vector_store().search(vector, request.count)
    return {
        "results": [r.to_dict() for r in results],
        "total": len(results),
        "dimensions": len(vector),
    }


def register_methods(dispatcher: VsetDispatcher) -> None:
    """Register all vset method handlers.

    Args:
        dispatcher: Dispatcher to register methods on.
    """
    dispatcher.register("vset.embed", _handle_embed)
    dispatcher.register("vset.embedBatch", _handle_embed_batch)
    dispatcher.register("vset.combine", _handle_combine)
    dispatcher.register("vset.similarity", _handle_similarity)
    dispatcher.register("vset.compareVectors", _handle_compare_vectors)
    dispatcher.register("vset.listModels", _handle_list_models)

    dispatcher.register("vset.getCacheStats", _handle_get_cache_stats)
    dispatcher.register("vset.clearCache", _handle_clear_cache)
    dispatcher.register("vset.configureCache", _handle_configure_cache)

    dispatcher.register("vset.addVector", _handle_add_vector)
    dispatcher.register("vset.searchVectors", _handle_search_vectors)
