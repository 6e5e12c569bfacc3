"""Request and response models for the vset JSON-RPC server."""

from .health import HealthResponse
from .jsonrpc import JsonRpcError, JsonRpcRequest, JsonRpcResponse

__all__ = [
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcError",
    "HealthResponse",
]
