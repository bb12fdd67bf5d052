"""Throttled, deadline-bound, retrying dispatcher for ONE provider.

Hey future me - ALL provider calls go through RequestGateway.send()! There is
exactly one gateway per provider (built in infrastructure/lifecycle.py) and it
is shared by every run, so its throttle is the provider's rate budget.

Per call:
1. Wait for the dispatch slot (DispatchThrottle, spacing from START times)
2. Dispatch with a deadline (30s unless the caller brings its own). The same
   deadline goes to httpx per request, otherwise its 5s default would win
3. Deadline expired -> RequestTimeoutError, NEVER retried
4. Other transport failure -> wait retry_backoff, try exactly once more,
   second failure -> NetworkError
5. Any HTTP status (also 4xx/5xx) is returned as-is. Reading provider error
   bodies is the caller's job (see provider_errors.py).
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from tunemigrate.config.settings import GatewaySettings
from tunemigrate.domain.exceptions import NetworkError, RequestTimeoutError
from tunemigrate.infrastructure.integrations.http_pool import HttpClientPool
from tunemigrate.infrastructure.rate_limiter import DispatchThrottle

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, Any] | list[tuple[str, Any]]


class RequestGateway:
    """Single synchronization point for outbound calls to one provider."""

    DEFAULT_CONTENT_TYPE = "application/json"

    def __init__(
        self,
        name: str,
        base_url: str,
        settings: GatewaySettings,
        client: httpx.AsyncClient | None = None,
        default_headers: Mapping[str, str] | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            name: Provider name ("spotify", "tidal"), used in errors and logs
            base_url: Prefix for relative paths
            settings: Spacing, deadline and retry configuration
            client: Injected HTTP client. None means the shared HttpClientPool client.
            default_headers: Headers sent with every call (e.g. JSON:API Accept)
        """
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.settings = settings
        self._client = client
        self._default_headers = dict(default_headers or {})
        self.throttle = DispatchThrottle(
            min_interval=settings.min_request_interval, name=name
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            return await HttpClientPool.get_client()
        return self._client

    def build_url(self, path: str) -> str:
        """Absolute URLs pass through, relative paths are joined onto the base URL."""
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path

    async def send(
        self,
        method: str,
        path: str,
        token: str,
        query: QueryParams | None = None,
        body: Any = None,
        content_type: str | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Dispatch one call to the provider.

        Args:
            method: HTTP method
            path: Relative path or absolute URL (e.g. a "next" page link)
            token: OAuth bearer token
            query: Query parameters (a list of tuples allows repeated keys)
            body: JSON-serializable body
            content_type: Body content type (default application/json)
            timeout: Deadline in seconds (default settings.request_timeout)

        Returns:
            The provider's response, whatever its status code

        Raises:
            RequestTimeoutError: The deadline expired
            NetworkError: Transport failed twice
        """
        url = self.build_url(path)
        headers = {**self._default_headers, "Authorization": f"Bearer {token}"}
        content: bytes | None = None
        if body is not None:
            headers["Content-Type"] = content_type or self.DEFAULT_CONTENT_TYPE
            content = json.dumps(body).encode("utf-8")

        deadline = timeout if timeout is not None else self.settings.request_timeout
        client = await self._get_client()

        attempt = 0
        while True:
            attempt += 1
            await self.throttle.acquire()
            try:
                response = await asyncio.wait_for(
                    client.request(
                        method,
                        url,
                        params=query,
                        content=content,
                        headers=headers,
                        timeout=deadline,
                    ),
                    timeout=deadline,
                )
            except (TimeoutError, httpx.TimeoutException) as e:
                logger.error(
                    f"{self.name}: {method} {url} exceeded {deadline:.1f}s deadline"
                )
                raise RequestTimeoutError(
                    self.name, f"{method} {url} timed out after {deadline:.1f}s"
                ) from e
            except httpx.TransportError as e:
                if attempt >= 2:
                    logger.error(
                        f"{self.name}: {method} {url} failed again after retry: {e}"
                    )
                    raise NetworkError(
                        self.name, f"{method} {url} failed: {e}"
                    ) from e
                logger.warning(
                    f"{self.name}: {method} {url} failed ({type(e).__name__}: {e}), "
                    f"retrying in {self.settings.retry_backoff:.1f}s"
                )
                await asyncio.sleep(self.settings.retry_backoff)
                continue

            logger.debug(f"{self.name}: {method} {url} -> {response.status_code}")
            return response

    async def get(
        self, path: str, token: str, query: QueryParams | None = None
    ) -> httpx.Response:
        """Shortcut for GET."""
        return await self.send("GET", path, token, query=query)
