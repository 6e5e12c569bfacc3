"""vset server package.

Embedding generation, caching and multi-vector combination exposed over
a JSON-RPC 2.0 HTTP API.
"""

__version__ = "0.3.0"

from .server import create_app, run_server  # noqa: E402

__all__ = ["create_app", "run_server", "__version__"]
