"""
WiFeed HTTP client.

One outbound GET per tool call: the API key is attached as the ``apikey``
query parameter, parameters without a value are dropped, and every
transport/HTTP failure is mapped onto the error taxonomy in errors.py.
Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from wifeed_mcp.constants import REQUEST_TIMEOUT_S, WIFEED_BASE_URL
from wifeed_mcp.errors import (
    AuthenticationError,
    ConfigurationError,
    EndpointNotFoundError,
    ForbiddenError,
    RateLimitError,
    UnexpectedError,
    UpstreamProtocolError,
    UpstreamServerError,
    WiFeedAPIError,
)

logger = logging.getLogger(__name__)


_DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop parameters without a value so they are never sent as empty strings."""
    return {k: v for k, v in (params or {}).items() if v is not None}


# ============================================================================
# WIFEED API CLIENT
# ============================================================================

class WiFeedClient:
    """HTTP client for the WiFeed API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = WIFEED_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_S,
        debug: bool = False,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Args:
            api_key: WiFeed API key, forwarded on every request.
            base_url: API root; endpoints are appended to it.
            timeout: Per-request timeout in seconds.
            debug: Log the shape of every response body.
            http: Optional shared ``httpx.AsyncClient``. When omitted a client
                is opened and closed around each request.
        """
        if not api_key:
            raise ConfigurationError(
                "WiFeed API key not found. Set WIFEED_API_KEY before starting the server."
            )
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.debug = debug
        self._http = http

    async def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Make a GET request to the WiFeed API.

        Args:
            endpoint: API endpoint (e.g., '/du-lieu-vimo/ty-gia')
            params: Query parameters; ``None`` values are omitted

        Returns:
            Parsed JSON body of a 2xx response.
        """
        query = clean_params(params)
        query["apikey"] = self.api_key
        url = f"{self.base_url}{endpoint}"

        try:
            if self._http is not None:
                response = await self._http.get(url, params=query, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(
                    timeout=self.timeout, headers=_DEFAULT_HEADERS
                ) as http:
                    response = await http.get(url, params=query)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise _map_status_error(endpoint, e.response) from e
        except (httpx.TimeoutException, httpx.RemoteProtocolError) as e:
            raise UpstreamProtocolError(str(e) or type(e).__name__) from e
        except Exception as e:
            raise UnexpectedError(str(e) or type(e).__name__) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamProtocolError(
                f"invalid JSON response ({e})", response.status_code
            ) from e

        if self.debug:
            _log_response_shape(endpoint, payload)
        return payload


def _map_status_error(endpoint: str, response: httpx.Response) -> WiFeedAPIError:
    status = response.status_code
    if status == 401:
        return AuthenticationError()
    if status == 403:
        return ForbiddenError()
    if status == 404:
        return EndpointNotFoundError(endpoint)
    if status == 429:
        return RateLimitError()
    if status >= 500:
        return UpstreamServerError(status, response.reason_phrase)
    return UpstreamProtocolError(
        f"Client error '{status} {response.reason_phrase}' for url '{response.url}'",
        status,
    )


def _log_response_shape(endpoint: str, payload: Any) -> None:
    logger.debug("Endpoint: %s", endpoint)
    logger.debug("Response type: %s", type(payload).__name__)
    if isinstance(payload, list) and payload:
        logger.debug("Array length: %d", len(payload))
        if isinstance(payload[0], dict):
            logger.debug("First item keys: %s", ", ".join(payload[0].keys()))
    elif isinstance(payload, dict):
        logger.debug("Object keys: %s", ", ".join(payload.keys()))
        data = payload.get("data")
        if isinstance(data, list) and data:
            logger.debug("data array length: %d", len(data))
            if isinstance(data[0], dict):
                logger.debug("data[0] keys: %s", ", ".join(data[0].keys()))


# ============================================================================
# PROCESS-WIDE CLIENT
# ============================================================================

_client: Optional[WiFeedClient] = None


def initialize_client(api_key: str, **kwargs: Any) -> WiFeedClient:
    """Create the process-wide client, replacing any previous one."""
    global _client
    _client = WiFeedClient(api_key, **kwargs)
    return _client


def get_client() -> WiFeedClient:
    """Return the process-wide client; fail fast if it was never initialized."""
    if _client is None:
        raise ConfigurationError(
            "WIFEED_API_KEY environment variable is not set. "
            "Please set it before starting the server."
        )
    return _client


def reset_client() -> None:
    """Forget the process-wide client (used by tests)."""
    global _client
    _client = None
