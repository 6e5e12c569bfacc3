"""Shared HTTP plumbing for the remote embedding adapters."""

import logging
from typing import Any

import httpx

from ..errors import AuthError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


async def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    provider: str,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """POST a JSON body and return the decoded JSON response.

    Raises:
        AuthError: On 401/403 responses.
        TransportError: On network failure, other non-2xx status, or a
            body that is not JSON.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        raise TransportError(f"{provider} request failed: {e}", provider=provider) from e

    if response.status_code in (401, 403):
        raise AuthError(
            f"{provider} rejected credentials ({response.status_code})",
            provider=provider,
        )
    if not response.is_success:
        raise TransportError(
            f"{provider} API error: {response.status_code} - {response.text[:200]}",
            provider=provider,
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as e:
        raise TransportError(
            f"{provider} returned invalid JSON",
            provider=provider,
            status_code=response.status_code,
        ) from e


def extract(data: Any, provider: str, *path: str | int) -> Any:
    """Walk a decoded JSON response, raising TransportError if a step is missing."""
    current = data
    for step in path:
        try:
            current = current[step]
        except (KeyError, IndexError, TypeError):
            logger.debug("Unexpected %s response shape: %r", provider, data)
            raise TransportError(
                f"{provider} response missing {'.'.join(str(p) for p in path)}",
                provider=provider,
            ) from None
    return current
