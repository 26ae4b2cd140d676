"""Metadata crawler orchestration.

Runs the collector phases strictly in order against a fresh CrawlContext,
then resolves folder paths, validates, and serializes the graph. Any phase
failure aborts the crawl; a partial graph is never returned.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from ..clients.rest_client import RESTClient
from ..clients.soap_client import SOAPClient
from ..clients.transport import ApiTransport
from ..collectors import COLLECTOR_PHASES
from ..core.config import SFMCConfig
from ..core.errors import CrawlCancelledError, CrawlerError, PhaseError
from ..output.serializer import serialize
from .context import CrawlContext
from .folder_paths import FolderPathResolver
from .validation import validate_and_clean

logger = logging.getLogger(__name__)

# Called with (phase name, phase index, total phases)
ProgressCallback = Callable[[str, int, int], None]

POST_PHASES = ["folder_paths", "validation", "serialization"]


class MetadataCrawler:
    """Crawls one SFMC account into a dependency graph.

    Each call to ``crawl`` builds its own context, transport and clients, so a
    crawler instance can be reused without state leaking between runs.
    """

    def __init__(
        self,
        config: SFMCConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize the crawler.

        Args:
            config: SFMC configuration with subdomain and token(s).
            http_client: Optional client to send requests through (not closed
                by the crawler).
            progress_callback: Optional callback invoked as each phase starts.
        """
        self._config = config
        self._http_client = http_client
        self._progress_callback = progress_callback
        self._current_phase: Optional[str] = None
        self.last_context: Optional[CrawlContext] = None

    async def crawl(self, cancel_event: Optional[asyncio.Event] = None) -> dict[str, Any]:
        """Run a full crawl.

        Args:
            cancel_event: Setting this event aborts the crawl.

        Returns:
            Graph document with ``nodes``, ``edges`` and ``metadata``.

        Raises:
            CrawlerError: Invalid configuration, or any phase failure.
            AuthenticationError: The token was rejected (``reauth_required``).
            CrawlCancelledError: Cancelled or past ``crawl_timeout``.
        """
        errors = self._config.validate()
        if errors:
            raise CrawlerError(f"Invalid configuration: {'; '.join(errors)}")

        self._current_phase = None
        self.last_context = None
        started = time.monotonic()
        ctx = CrawlContext()

        logger.info(f"Starting metadata crawl for {self._config.subdomain}")

        async with ApiTransport(self._config, self._http_client) as transport:
            rest = RESTClient(self._config, transport)
            soap = SOAPClient(self._config, transport)

            graph = await self._run_guarded(
                self._run_phases(ctx, rest, soap, transport, started),
                cancel_event,
            )

        self.last_context = ctx
        performance = graph["metadata"]["performance"]
        logger.info(
            f"Crawl complete in {performance['durationSeconds']}s: "
            f"{graph['metadata']['totalNodes']} nodes, {graph['metadata']['totalEdges']} edges, "
            f"{performance['apiCalls']} API calls"
        )
        return graph

    async def _run_phases(
        self,
        ctx: CrawlContext,
        rest: RESTClient,
        soap: SOAPClient,
        transport: ApiTransport,
        started: float,
    ) -> dict[str, Any]:
        total = len(COLLECTOR_PHASES) + len(POST_PHASES)

        for index, collector_cls in enumerate(COLLECTOR_PHASES):
            collector = collector_cls(ctx, rest, soap, self._config)
            await self._run_phase(collector.name, index, total, collector.collect)

        offset = len(COLLECTOR_PHASES)
        resolver = FolderPathResolver(ctx.folders)
        await self._run_phase("folder_paths", offset, total, lambda: resolver.apply(ctx))
        await self._run_phase("validation", offset + 1, total, lambda: validate_and_clean(ctx))
        return await self._run_phase(
            "serialization",
            offset + 2,
            total,
            lambda: serialize(ctx, transport.stats, time.monotonic() - started),
        )

    async def _run_phase(
        self,
        name: str,
        index: int,
        total: int,
        step: Callable[[], Union[Any, Awaitable[Any]]],
    ) -> Any:
        """Run one phase, tagging any failure with the phase name."""
        self._current_phase = name
        if self._progress_callback:
            self._progress_callback(name, index, total)
        logger.debug(f"Phase {index + 1}/{total}: {name}")

        try:
            result = step()
            if inspect.isawaitable(result):
                result = await result
            return result
        except CrawlerError as e:
            if e.phase is None:
                e.phase = name
            logger.error(f"Phase '{name}' failed: {type(e).__name__}: {e.message}")
            raise
        except Exception as e:
            logger.exception(f"Phase '{name}' failed unexpectedly")
            raise PhaseError(name, e) from e

    async def _run_guarded(
        self,
        coro: Awaitable[dict[str, Any]],
        cancel_event: Optional[asyncio.Event],
    ) -> dict[str, Any]:
        """Await the crawl, aborting it on cancel_event or the crawl deadline."""
        task = asyncio.ensure_future(coro)
        waiters: set[asyncio.Future] = {task}
        cancel_waiter: Optional[asyncio.Future] = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_waiter)

        timeout = self._config.crawl_timeout
        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except BaseException:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        phase = self._current_phase
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Crawl cancelled during phase '{phase}'")
            raise CrawlCancelledError("Crawl cancelled", phase=phase)

        logger.error(f"Crawl exceeded deadline of {timeout}s during phase '{phase}'")
        raise CrawlCancelledError(f"Crawl exceeded deadline of {timeout}s", phase=phase)


async def crawl_metadata(
    config: SFMCConfig,
    cancel_event: Optional[asyncio.Event] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """Convenience wrapper: crawl once and return the graph."""
    crawler = MetadataCrawler(config, http_client=http_client)
    return await crawler.crawl(cancel_event=cancel_event)
