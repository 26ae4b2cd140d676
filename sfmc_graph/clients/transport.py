"""Shared HTTP transport for SFMC SOAP and REST calls.

Wraps a single httpx.AsyncClient with:
- Retry with exponential backoff on network failures and 429/502/503/504
- Immediate failure on authentication errors (401/403)
- Call, error and retry counters for crawl statistics
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..core.config import SFMCConfig
from ..core.errors import ApiError, AuthenticationError, RetryExhaustedError

logger = logging.getLogger(__name__)

# Retry configuration
RETRY_BACKOFF = 2.0
RETRYABLE_STATUS_CODES = {429, 502, 503, 504}
AUTH_STATUS_CODES = {401, 403}


@dataclass
class TransportStats:
    """Counters shared by every call made through one transport."""

    api_calls: int = 0
    error_count: int = 0
    retries: int = 0
    started_at: float = field(default_factory=time.monotonic)

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started_at

    @property
    def success_rate(self) -> float:
        """Percentage of calls that did not fail."""
        if not self.api_calls:
            return 100.0
        return (self.api_calls - self.error_count) / self.api_calls * 100


class ApiTransport:
    """Async HTTP transport with retry/backoff and error classification.

    Has no knowledge of entities; its only side effect is on its counters.
    """

    def __init__(
        self,
        config: SFMCConfig,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the transport.

        Args:
            config: SFMC configuration (retry and timeout settings).
            client: Optional pre-built client. An injected client is not
                closed by the transport.
        """
        self._config = config
        self._client = client
        self._owns_client = client is None
        self.stats = TransportStats()

    async def __aenter__(self) -> "ApiTransport":
        self._get_client()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout)
            self._owns_client = True
        return self._client

    def _get_retry_delay(self, response: Optional[httpx.Response], attempt: int) -> float:
        """Calculate delay before retry."""
        cap = self._config.max_retry_delay
        if response is not None and response.status_code == 429:
            # Honor Retry-After header if present
            retry_after = response.headers.get("Retry-After")
            if retry_after:
                try:
                    return min(float(retry_after), cap)
                except ValueError:
                    pass

        return min(self._config.retry_delay * (RETRY_BACKOFF**attempt), cap)

    async def call(
        self,
        url: str,
        *,
        method: str = "GET",
        content: Optional[bytes] = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        attempt: int = 0,
    ) -> httpx.Response:
        """Send one request, retrying transient failures.

        Args:
            url: Absolute endpoint URL.
            method: HTTP method.
            content: Raw request body.
            params: Query string parameters.
            headers: Request headers.
            attempt: Zero-based attempt number, incremented on each retry.

        Returns:
            The successful (2xx) response.

        Raises:
            AuthenticationError: On 401/403, without retrying.
            ApiError: On any other non-retryable HTTP error.
            RetryExhaustedError: When transient failures outlast max_retries.
        """
        client = self._get_client()
        max_retries = self._config.max_retries
        self.stats.api_calls += 1

        try:
            response = await client.request(
                method,
                url,
                content=content,
                params=params,
                headers=headers,
                timeout=self._config.timeout,
            )
        except httpx.RequestError as e:
            self.stats.error_count += 1
            if attempt < max_retries:
                delay = self._get_retry_delay(None, attempt)
                logger.warning(
                    f"{method} {url} failed: {e!r}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                return await self._retry(delay, url, method, content, params, headers, attempt)
            raise RetryExhaustedError(
                f"{method} {url} failed after {attempt + 1} attempts: {e!r}",
                attempts=attempt + 1,
            ) from e

        if response.is_success:
            return response

        self.stats.error_count += 1
        status = response.status_code

        if status in AUTH_STATUS_CODES:
            raise AuthenticationError(
                f"{method} {url} rejected with {status}; re-authentication required",
                status_code=status,
                body=response.text,
            )

        if status in RETRYABLE_STATUS_CODES:
            if attempt < max_retries:
                delay = self._get_retry_delay(response, attempt)
                logger.warning(
                    f"Got {status} from {url}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                return await self._retry(delay, url, method, content, params, headers, attempt)
            raise RetryExhaustedError(
                f"{method} {url} still returning {status} after {attempt + 1} attempts",
                attempts=attempt + 1,
                last_status=status,
            )

        raise ApiError(
            f"{method} {url} failed with {status}",
            status_code=status,
            body=response.text,
        )

    async def _retry(
        self,
        delay: float,
        url: str,
        method: str,
        content: Optional[bytes],
        params: Optional[dict[str, Any]],
        headers: Optional[dict[str, str]],
        attempt: int,
    ) -> httpx.Response:
        self.stats.retries += 1
        if delay > 0:
            await asyncio.sleep(delay)
        return await self.call(
            url,
            method=method,
            content=content,
            params=params,
            headers=headers,
            attempt=attempt + 1,
        )
