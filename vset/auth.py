"""Bearer token authentication for vset endpoints."""

from typing import Annotated

from fastapi import Header, HTTPException, status

from .config import Config

_BEARER_PREFIX = "Bearer "


class AuthManager:
    """Checks bearer tokens against the configured token list."""

    def __init__(self, config: Config) -> None:
        self._config = config

    def _reject(self, detail: str) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    def verify_token(self, authorization: str) -> str:
        """Verify an Authorization header and return the client ID.

        Args:
            authorization: Authorization header value.

        Returns:
            Client ID, or "anonymous" when auth is disabled.

        Raises:
            HTTPException: 401 if the header is missing, malformed or the
                token is unknown.
        """
        if not self._config.auth.enabled:
            return "anonymous"

        if not authorization:
            raise self._reject("Authorization header required")
        if not authorization.startswith(_BEARER_PREFIX):
            raise self._reject("Invalid authorization scheme, expected Bearer")

        client_id = self._config.auth.validate_token(authorization[len(_BEARER_PREFIX):])
        if not client_id:
            raise self._reject("Invalid or expired token")
        return client_id


# Set by the server on startup
_auth_manager: AuthManager | None = None


def set_auth_manager(manager: AuthManager | None) -> None:
    """Set the global auth manager instance."""
    global _auth_manager
    _auth_manager = manager


def get_auth_manager() -> AuthManager:
    """Get the global auth manager instance.

    Raises:
        RuntimeError: If the auth manager is not initialized.
    """
    if _auth_manager is None:
        raise RuntimeError("Auth manager not initialized")
    return _auth_manager


async def verify_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """FastAPI dependency for bearer token verification."""
    return get_auth_manager().verify_token(authorization or "")
