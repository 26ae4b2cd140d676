"""REST API client for SFMC.

Thin JSON layer over the shared transport:
- Bearer token headers
- JSON decoding with ParseError on malformed bodies
- SFMC $page/$pageSize pagination
"""

import logging
from typing import Any, Optional

import httpx

from ..core.config import SFMCConfig
from ..core.errors import ParseError
from .transport import ApiTransport

logger = logging.getLogger(__name__)


class RESTClient:
    """REST API client for SFMC."""

    def __init__(self, config: SFMCConfig, transport: ApiTransport):
        """Initialize the REST client.

        Args:
            config: SFMC configuration.
            transport: Shared transport.
        """
        self._config = config
        self._transport = transport
        self._debug = config.rest_debug

    @property
    def base_url(self) -> str:
        """Get the REST API base URL."""
        return self._config.rest_url

    def _build_headers(self) -> dict[str, str]:
        """Build request headers with authorization."""
        return {
            "Authorization": f"Bearer {self._config.access_token}",
            "Content-Type": "application/json",
        }

    def _log_response(self, response: httpx.Response) -> None:
        """Log response details if debug is enabled."""
        if self._debug:
            logger.debug(f"Response status: {response.status_code}")
            logger.debug(f"Response body: {response.text[:1000]}")

    async def get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """GET a path and decode the JSON body.

        Args:
            path: API path (e.g., "/automation/v1/automations").
            params: Query string parameters.

        Returns:
            Decoded JSON document.

        Raises:
            ParseError: If the body is not valid JSON.
        """
        url = f"{self.base_url}{path}"
        if self._debug:
            logger.debug(f"REST GET {url} params={params}")

        response = await self._transport.call(
            url,
            method="GET",
            params=params,
            headers=self._build_headers(),
        )
        self._log_response(response)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Malformed JSON from {path}")
            raise ParseError(f"Invalid JSON from {path}: {e}", object_type=path) from e

    async def get_items(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """GET every page of a list endpoint and return the combined items.

        Stops on an empty or short page, once ``count`` items are collected,
        or at ``max_pages``.
        """
        page_size = page_size or self._config.page_size
        max_pages = max_pages or self._config.max_pages
        items: list[dict[str, Any]] = []
        page = 1

        while page <= max_pages:
            query = dict(params or {})
            query["$page"] = page
            query["$pageSize"] = page_size

            data = await self.get_json(path, query)
            if isinstance(data, list):
                batch = data
                total = None
            elif isinstance(data, dict):
                batch = data.get("items") or []
                total = data.get("count")
            else:
                raise ParseError(f"Unexpected payload type from {path}", object_type=path)

            items.extend(item for item in batch if isinstance(item, dict))

            if len(batch) < page_size:
                break
            if isinstance(total, int) and len(items) >= total:
                break
            page += 1
        else:
            logger.warning(f"Stopped paging {path} at page limit {max_pages}")

        return items
