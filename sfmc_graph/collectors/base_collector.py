"""Base collector pattern for SFMC entity collection.

Every collector runs the same fetch -> enrich -> transform -> store ->
extract_relationships pipeline against a shared CrawlContext.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Generic, Optional, TypeVar

from pydantic import BaseModel

from ..clients.rest_client import RESTClient
from ..clients.soap_client import SOAPClient
from ..core.config import SFMCConfig
from ..crawler.context import CrawlContext

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)
R = TypeVar("R")


@dataclass
class CollectorResult:
    """Summary of one collector run."""

    collector_name: str
    item_count: int = 0
    edge_count: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        """Get collection duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0


async def gather_bounded(coros: list[Awaitable[R]], limit: int) -> list[R]:
    """Run coroutines concurrently, at most ``limit`` at a time.

    If one fails, the remaining tasks are cancelled before the error
    propagates.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def run(coro: Awaitable[R]) -> R:
        async with semaphore:
            return await coro

    tasks = [asyncio.ensure_future(run(coro)) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class BaseCollector(ABC, Generic[T]):
    """Abstract base class for entity collectors.

    Subclasses fetch raw records, parse them into typed entities, store them
    in the context and link them to entities that are already known. Links
    to entities that are not collected are skipped, never errors.
    """

    # Override in subclasses
    name: str = "base"
    description: str = "Base collector"
    object_type: str = "object"

    def __init__(
        self,
        ctx: CrawlContext,
        rest_client: RESTClient,
        soap_client: SOAPClient,
        config: SFMCConfig,
    ):
        """Initialize the collector.

        Args:
            ctx: Crawl context to populate.
            rest_client: REST client instance.
            soap_client: SOAP client instance.
            config: SFMC configuration.
        """
        self.ctx = ctx
        self._rest = rest_client
        self._soap = soap_client
        self._config = config

    async def collect(self) -> CollectorResult:
        """Execute the full collection pipeline.

        Errors propagate unchanged; the crawler decides what a failed phase
        means.
        """
        result = CollectorResult(collector_name=self.name)
        edges_before = len(self.ctx.edges)

        raw_items = await self.fetch_data()
        enriched = await self.enrich_data(raw_items)
        records = self.transform_data(enriched)
        self.store(records)
        await self.extract_relationships(records)

        result.item_count = len(records)
        result.edge_count = len(self.ctx.edges) - edges_before
        result.completed_at = datetime.now()

        logger.info(
            f"Collected {result.item_count} {self.description} "
            f"({result.edge_count} edges) in {result.duration_seconds:.2f}s"
        )
        return result

    @abstractmethod
    async def fetch_data(self) -> list[dict[str, Any]]:
        """Fetch raw records from SFMC APIs."""
        ...

    async def enrich_data(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Add detail to raw records before parsing. Default: no-op."""
        return items

    @abstractmethod
    def transform_data(self, items: list[dict[str, Any]]) -> list[T]:
        """Parse raw records into typed entities, skipping unusable ones."""
        ...

    @abstractmethod
    def store(self, records: list[T]) -> None:
        """Put parsed entities into the context dictionaries."""
        ...

    async def extract_relationships(self, records: list[T]) -> None:
        """Create edges to already-known entities. Default: none."""
        pass

    def _log_skipped(self, raw_count: int, parsed_count: int) -> None:
        skipped = raw_count - parsed_count
        if skipped:
            logger.debug(f"{self.name}: skipped {skipped} record(s) without an id")
