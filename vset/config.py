"""Server configuration management.

Loads configuration from a YAML file or from VSET_* environment variables.
"""

import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .engine.cache import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_SWEEP_BATCH,
    DEFAULT_SWEEP_THRESHOLD,
    DEFAULT_TTL_SECONDS,
)
from .engine.embeddings.config import EmbeddingConfig, parse_embedding_config
from .engine.embeddings.factory import embedding_settings_from_env
from .engine.vector_math import CombinationMethod


@dataclass(slots=True)
class AuthToken:
    """A bearer token and the client it identifies."""

    agent: str
    token: str


@dataclass(slots=True)
class AuthConfig:
    """Authentication configuration.

    Attributes:
        enabled: Whether authentication is required.
        tokens: Accepted tokens.
    """

    enabled: bool = True
    tokens: list[AuthToken] = field(default_factory=list)

    def validate_token(self, token: str) -> str | None:
        """Return the client ID for a token, or None if unknown.

        Uses constant-time comparison. Empty tokens never match.
        """
        for auth_token in self.tokens:
            if auth_token.token and secrets.compare_digest(auth_token.token, token):
                return auth_token.agent
        return None


@dataclass(slots=True)
class ServerConfig:
    """HTTP server configuration.

    Attributes:
        host: Bind address.
        port: Bind port.
        cors_origins: Allowed CORS origins.
        log_level: Root log level name.
    """

    host: str = "0.0.0.0"
    port: int = 8200
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


@dataclass(slots=True)
class CacheConfig:
    """Embedding cache configuration.

    Attributes:
        enabled: Whether embeddings are cached at all.
        ttl_seconds: Default time-to-live of a cached embedding.
        sweep_threshold: Entry count above which expired entries are swept.
        sweep_batch: Maximum expired entries removed per sweep.
        max_entries: Hard limit on cached entries.
    """

    enabled: bool = True
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD
    sweep_batch: int = DEFAULT_SWEEP_BATCH
    max_entries: int = DEFAULT_MAX_ENTRIES


@dataclass(slots=True)
class CombinationConfig:
    """Vector combination defaults.

    Attributes:
        power_factor: Exponent for power-weighted combination.
        debounce_seconds: Quiet period before a debounced recompute runs.
        method: Default combination method wire value.
    """

    power_factor: float = 2.0
    debounce_seconds: float = 0.5
    method: str = CombinationMethod.LINEAR.value


@dataclass(slots=True)
class Config:
    """Complete server configuration.

    Attributes:
        server: HTTP server settings.
        auth: Authentication settings.
        cache: Embedding cache settings.
        combination: Combination defaults.
        embedding: Default embedding settings in the wire shape accepted
            by ``parse_embedding_config``. ``provider: auto`` picks Ollama
            or the local model at startup.
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    combination: CombinationConfig = field(default_factory=CombinationConfig)
    embedding: dict[str, Any] = field(default_factory=dict)

    @property
    def auto_detect_embedding(self) -> bool:
        return self.embedding.get("provider") == "auto"

    def embedding_config(self) -> EmbeddingConfig:
        """Parse the default embedding settings.

        Raises:
            ConfigurationError: If the settings are invalid.
        """
        if self.auto_detect_embedding:
            return parse_embedding_config(None)
        return parse_embedding_config(self.embedding)

    @property
    def combination_method(self) -> CombinationMethod:
        return CombinationMethod.parse(self.combination.method)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from a YAML file.

        Values of the form ${VAR_NAME} in auth tokens and embedding
        settings are replaced with the environment variable's value.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Loaded configuration, or defaults if the file is missing or empty.
        """
        if not path.exists():
            return cls()

        data = yaml.safe_load(path.read_text())
        if not data:
            return cls()

        return cls._from_dict(data)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Environment variables:
            VSET_HOST: Server bind address
            VSET_PORT: Server bind port
            VSET_LOG_LEVEL: Log level name
            VSET_AUTH_ENABLED: "false" disables bearer auth
            VSET_AUTH_TOKENS: Comma-separated client:token pairs
            VSET_CACHE_ENABLED: "false" disables the embedding cache
            VSET_CACHE_TTL: Default cache TTL in seconds
            VSET_CACHE_MAX_ENTRIES: Hard limit on cached entries
            VSET_POWER_FACTOR: Power-weighted exponent
            VSET_DEBOUNCE_SECONDS: Debounce quiet period
            VSET_COMBINATION_METHOD: Default combination method
            VSET_EMBEDDING_*: Default embedding settings

        Returns:
            Configuration from environment.
        """
        return cls(
            server=ServerConfig(
                host=os.getenv("VSET_HOST", "0.0.0.0"),
                port=int(os.getenv("VSET_PORT", "8200")),
                log_level=os.getenv("VSET_LOG_LEVEL", "INFO").upper(),
            ),
            auth=AuthConfig(
                enabled=_env_bool("VSET_AUTH_ENABLED", True),
                tokens=_parse_auth_tokens(os.getenv("VSET_AUTH_TOKENS", "")),
            ),
            cache=CacheConfig(
                enabled=_env_bool("VSET_CACHE_ENABLED", True),
                ttl_seconds=float(os.getenv("VSET_CACHE_TTL", str(DEFAULT_TTL_SECONDS))),
                max_entries=int(os.getenv("VSET_CACHE_MAX_ENTRIES", str(DEFAULT_MAX_ENTRIES))),
            ),
            combination=CombinationConfig(
                power_factor=float(os.getenv("VSET_POWER_FACTOR", "2.0")),
                debounce_seconds=float(os.getenv("VSET_DEBOUNCE_SECONDS", "0.5")),
                method=os.getenv("VSET_COMBINATION_METHOD", CombinationMethod.LINEAR.value),
            ),
            embedding=embedding_settings_from_env(),
        )

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        config = cls()

        if "server" in data:
            srv = data["server"]
            config.server = ServerConfig(
                host=srv.get("host", config.server.host),
                port=srv.get("port", config.server.port),
                cors_origins=srv.get("cors_origins", config.server.cors_origins),
                log_level=str(srv.get("log_level", config.server.log_level)).upper(),
            )

        if "auth" in data:
            auth = data["auth"]
            tokens = [
                AuthToken(
                    agent=token_data.get("agent", ""),
                    token=_expand_env(token_data.get("token", "")),
                )
                for token_data in auth.get("tokens", [])
            ]
            config.auth = AuthConfig(enabled=auth.get("enabled", True), tokens=tokens)

        if "cache" in data:
            ca = data["cache"]
            config.cache = CacheConfig(
                enabled=ca.get("enabled", config.cache.enabled),
                ttl_seconds=float(ca.get("ttl_seconds", config.cache.ttl_seconds)),
                sweep_threshold=int(ca.get("sweep_threshold", config.cache.sweep_threshold)),
                sweep_batch=int(ca.get("sweep_batch", config.cache.sweep_batch)),
                max_entries=int(ca.get("max_entries", config.cache.max_entries)),
            )

        if "combination" in data:
            co = data["combination"]
            config.combination = CombinationConfig(
                power_factor=float(co.get("power_factor", config.combination.power_factor)),
                debounce_seconds=float(
                    co.get("debounce_seconds", config.combination.debounce_seconds)
                ),
                method=co.get("method", config.combination.method),
            )

        if "embedding" in data and data["embedding"]:
            config.embedding = {
                key: _expand_env(value) for key, value in data["embedding"].items()
            }

        return config


def _expand_env(value: Any) -> Any:
    """Replace a whole-value ${VAR} reference with the variable's value.

    Nested dicts are expanded recursively; other values pass through.
    """
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


def _parse_auth_tokens(tokens_str: str) -> list[AuthToken]:
    """Parse VSET_AUTH_TOKENS.

    Format: client1:token1,client2:token2

    Args:
        tokens_str: Comma-separated client:token pairs.

    Returns:
        List of AuthToken objects.
    """
    tokens: list[AuthToken] = []
    if not tokens_str:
        return tokens

    for pair in tokens_str.split(","):
        pair = pair.strip()
        if ":" in pair:
            agent, token = pair.split(":", 1)
            if agent and token:
                tokens.append(AuthToken(agent=agent.strip(), token=token.strip()))

    return tokens
