"""
HTTP collaborator for the bridge.

The dispatchers and the initializer only depend on the small `HttpClient` /
`Response` protocols defined here; `HttpxClient` is the production
implementation backed by a single `httpx.AsyncClient`.
"""

import json
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from http_mcp.error_handling.exceptions import InvalidPayloadError, NetworkError
from http_mcp.security.utils import mask_sensitive_data

logger = logging.getLogger(__name__)

USER_AGENT = "http-mcp-bridge/0.1"


class Response(Protocol):
    """Upstream response as seen by the transcoders. Body accessors may be called more than once."""

    status: int
    status_text: str

    @property
    def ok(self) -> bool: ...

    def header(self, name: str) -> Optional[str]: ...

    async def text(self) -> str: ...

    async def json(self) -> Any: ...

    async def bytes(self) -> bytes: ...


class HttpClient(Protocol):
    """Injected HTTP capability. Implementations must be safe for concurrent use."""

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> Response: ...

    async def post(self, url: str, json_body: Any, headers: Optional[Dict[str, str]] = None) -> Response: ...


class HttpxResponse:
    """`Response` adapter around an `httpx.Response`."""

    def __init__(self, response: httpx.Response):
        self._response = response
        self.status = response.status_code
        self.status_text = response.reason_phrase

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        return self._response.headers.get(name)

    async def text(self) -> str:
        return self._response.text

    async def json(self) -> Any:
        try:
            return self._response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to decode JSON body from {self._response.url}: {e}")
            raise InvalidPayloadError(f"Failed to decode JSON response from {self._response.url}",
                                      original_exception=e)

    async def bytes(self) -> bytes:
        return self._response.content

    def __repr__(self) -> str:
        return f"<HttpxResponse [{self.status} {self.status_text}]>"


class HttpxClient:
    """
    `HttpClient` implementation using `httpx.AsyncClient`.

    Transport failures are reported as `NetworkError`; HTTP status codes are
    never raised here, the caller decides what a status means.
    """

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            timeout: Request timeout in seconds, applied to connect/read/write/pool.
            client: Pre-built client to use instead of creating one (the caller keeps ownership).
        """
        self._owns_client = client is None
        self.async_client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )
        logger.debug(f"httpx.AsyncClient ready with timeout={timeout}s")

    async def __aenter__(self) -> "HttpxClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpxResponse:
        return await self._request("GET", url, headers=headers)

    async def post(self, url: str, json_body: Any, headers: Optional[Dict[str, str]] = None) -> HttpxResponse:
        merged = {"Content-Type": "application/json"}
        merged.update(headers or {})
        content = json.dumps(json_body).encode("utf-8")
        return await self._request("POST", url, headers=merged, content=content)

    async def _request(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                       content: Optional[bytes] = None) -> HttpxResponse:
        logger.debug(f"{method} {url}")
        logger.debug("Request headers: %s", mask_sensitive_data(dict(headers or {})))
        try:
            response = await self.async_client.request(method, url, headers=headers, content=content)
        except httpx.TimeoutException as e:
            logger.error(f"HTTP timeout for {method} {url}: {e}")
            raise NetworkError(f"Request to {url} timed out", original_exception=e)
        except httpx.ConnectError as e:
            logger.error(f"HTTP connection error for {method} {url}: {e}")
            raise NetworkError(f"Unable to connect to {url}", original_exception=e)
        except httpx.RequestError as e:
            logger.error(f"HTTP request error for {method} {url}: {e}")
            raise NetworkError(f"Network/HTTP error for {url}: {e}", original_exception=e)

        logger.debug(f"{method} {url} -> {response.status_code} "
                     f"({response.headers.get('Content-Type', 'no content type')})")
        return HttpxResponse(response)

    async def close(self) -> None:
        """Close the underlying httpx client session."""
        if self._owns_client:
            await self.async_client.aclose()
            logger.debug("httpx.AsyncClient closed.")
