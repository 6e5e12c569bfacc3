"""vset HTTP server.

FastAPI application exposing the embedding engine via JSON-RPC 2.0.
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .auth import AuthManager, set_auth_manager, verify_bearer_token
from .config import Config
from .engine import (
    CombinationService,
    EmbeddingCache,
    EmbeddingService,
    VsetDispatcher,
    get_dispatcher,
    register_methods,
    set_combination_service,
    set_embedding_service,
)
from .engine.embeddings.factory import detect_default_text_config
from .engine.vectordb.factory import get_vector_store, set_vector_store
from .models import HealthResponse
from .models.jsonrpc import (
    INVALID_REQUEST,
    PARSE_ERROR,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/server.yaml"


async def build_services(config: Config) -> EmbeddingService:
    """Create the cache and services described by config and install them.

    Returns:
        The embedding service, which owns the cache.
    """
    cache = EmbeddingCache(
        default_ttl_seconds=config.cache.ttl_seconds,
        sweep_threshold=config.cache.sweep_threshold,
        sweep_batch=config.cache.sweep_batch,
        max_entries=config.cache.max_entries,
        enabled=config.cache.enabled,
    )

    if config.auto_detect_embedding:
        default_config = await detect_default_text_config()
    else:
        default_config = config.embedding_config()

    embedding_service = EmbeddingService(cache=cache, default_config=default_config)
    set_embedding_service(embedding_service)
    set_combination_service(
        CombinationService(
            embedding_service,
            power_factor=config.combination.power_factor,
            default_method=config.combination_method,
            debounce_seconds=config.combination.debounce_seconds,
        )
    )
    logger.info(
        "Embedding default: %s (cache %s, ttl %.0fs)",
        default_config.provider,
        "on" if cache.enabled else "off",
        cache.default_ttl_seconds,
    )
    return embedding_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Initializes auth, services, the vector store and the dispatcher on
    startup and keeps them on app.state.
    """
    app.state.start_time = time.monotonic()

    if getattr(app.state, "config", None) is None:
        app.state.config = Config.from_yaml(
            Path(os.getenv("VSET_CONFIG", DEFAULT_CONFIG_PATH))
        )
    config: Config = app.state.config

    auth_manager = AuthManager(config)
    set_auth_manager(auth_manager)
    app.state.auth_manager = auth_manager

    app.state.embedding_service = await build_services(config)
    app.state.vector_store = get_vector_store()

    dispatcher = get_dispatcher()
    register_methods(dispatcher)
    app.state.dispatcher = dispatcher
    logger.info("vset server ready with %d methods", len(dispatcher.methods))

    yield

    await app.state.vector_store.close()
    set_vector_store(None)


def create_app(config: Config | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Optional configuration (loaded from file at startup if None).

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="vset Server",
        description="Embedding generation, caching and vector combination API",
        version=__version__,
        lifespan=lifespan,
    )

    if config:
        app.state.config = config

    cors_origins = config.server.cors_origins if config else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    """Register all API routes."""

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Health check endpoint."""
        start_time = getattr(request.app.state, "start_time", 0.0)
        uptime = time.monotonic() - start_time if start_time else 0.0
        service: EmbeddingService | None = getattr(request.app.state, "embedding_service", None)
        response = HealthResponse(
            status="healthy",
            version=__version__,
            uptime_seconds=uptime,
            timestamp=datetime.now(UTC),
            cache_size=len(service.cache) if service else 0,
            default_provider=service.default_config.provider if service else "none",
        )
        return JSONResponse(content=response.to_dict())

    @app.post("/rpc")
    async def rpc_endpoint(
        request: Request,
        agent_id: str = Depends(verify_bearer_token),
    ) -> JSONResponse:
        """JSON-RPC 2.0 endpoint for vset methods."""
        try:
            body = await request.json()
        except ValueError:
            error_response = JsonRpcResponse.failure(
                None,
                JsonRpcError(code=PARSE_ERROR, message="Invalid JSON"),
            )
            return JSONResponse(content=error_response.to_dict())

        if not isinstance(body, dict):
            error_response = JsonRpcResponse.failure(
                None,
                JsonRpcError(code=INVALID_REQUEST, message="Request must be an object"),
            )
            return JSONResponse(content=error_response.to_dict())

        rpc_request = JsonRpcRequest(
            method=body.get("method", ""),
            params=body.get("params", {}),
            id=body.get("id"),
            jsonrpc=body.get("jsonrpc", ""),
        )

        dispatcher: VsetDispatcher = request.app.state.dispatcher
        response = await dispatcher.dispatch(rpc_request, agent_id)
        return JSONResponse(content=response.to_dict())


def run_server(
    host: str | None = None,
    port: int | None = None,
    config_path: str | None = None,
) -> None:
    """Run the vset server.

    Configuration comes from the YAML file when given, else from VSET_*
    environment variables; host and port override either.
    """
    import uvicorn

    config = Config.from_yaml(Path(config_path)) if config_path else Config.from_env()
    if host:
        config.server.host = host
    if port:
        config.server.port = port

    logging.basicConfig(
        level=os.getenv("VSET_LOG_LEVEL", config.server.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(config)
    uvicorn.run(app, host=config.server.host, port=config.server.port)


def main() -> None:
    """Command-line entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="vset Server")
    parser.add_argument(
        "--host",
        default=os.getenv("VSET_HOST"),
        help="Bind address (default: $VSET_HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("VSET_PORT", "0")) or None,
        help="Bind port (default: $VSET_PORT or 8200)",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML config file (overrides env vars)",
    )

    args = parser.parse_args()
    run_server(host=args.host, port=args.port, config_path=args.config)


if __name__ == "__main__":
    main()
