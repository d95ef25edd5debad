"""Async HTTP client with retry logic shared by the remote backends."""

import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mdxdb.errors import RemoteRequestError, RemoteTimeoutError


logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {502, 503, 504}


class _RetryableStatus(Exception):
    def __init__(self, response: httpx.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


class HTTPClient:
    """HTTP client with timeouts and retries."""

    DEFAULT_HEADERS = {
        "User-Agent": "mdxdb/0.1",
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {**self.DEFAULT_HEADERS, **(headers or {})}
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def open(self):
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str = "",
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content: str | bytes | None = None,
        headers: dict[str, str] | None = None,
        allow_statuses: tuple[int, ...] = (),
    ) -> httpx.Response:
        """
        Send a request with retries on transport errors and gateway statuses.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url``.
            allow_statuses: Error statuses returned to the caller instead of raised.

        Returns:
            HTTP response.

        Raises:
            RemoteTimeoutError: If the request times out on every attempt.
            RemoteRequestError: On network failure or an error status.
        """
        await self.open()
        url = f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.TransportError, _RetryableStatus)),
                stop=stop_after_attempt(self.retries + 1),
                wait=wait_exponential(multiplier=self.retry_delay, max=10),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.request(
                        method,
                        url,
                        params=params,
                        json=json,
                        content=content,
                        headers=headers,
                    )
                    if response.status_code in RETRYABLE_STATUSES:
                        logger.debug("Retrying %s %s after HTTP %d", method, url, response.status_code)
                        raise _RetryableStatus(response)
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError(
                f"Timeout calling {method} {url}",
                details={"error": str(e)},
            ) from e
        except httpx.TransportError as e:
            raise RemoteRequestError(
                f"Network error calling {method} {url}",
                details={"error": str(e)},
            ) from e
        except _RetryableStatus as e:
            response = e.response

        if response.status_code >= 400 and response.status_code not in allow_statuses:
            raise RemoteRequestError(
                f"HTTP error {response.status_code} from {method} {url}",
                status=response.status_code,
                details={"body": response.text[:500]},
            )
        return response

    async def get_json(self, path: str = "", params: dict[str, Any] | None = None) -> Any:
        """Fetch JSON from a path."""
        response = await self.request("GET", path, params=params)
        return response.json()

    async def post_json(self, path: str, payload: Any) -> Any:
        """POST a JSON body and decode the JSON answer."""
        response = await self.request("POST", path, json=payload)
        return response.json()
