"""Journey collector for SFMC.

Collects journeys and links each one to the Data Extension feeding its
entry trigger.
"""

import logging
from typing import Any

from ..core.record_paths import first_text
from ..inference.journey_entry import link_entry_sources
from ..types.entities import Journey
from .base_collector import BaseCollector, gather_bounded

logger = logging.getLogger(__name__)


class JourneyCollector(BaseCollector[Journey]):
    """Collector for SFMC Journeys."""

    name = "journeys"
    description = "journeys"
    object_type = "Journey"

    async def fetch_data(self) -> list[dict[str, Any]]:
        return await self._rest.get_items("/interaction/v1/interactions")

    async def enrich_data(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Fetch journey detail where the list item carries no entry triggers."""
        if not self._config.fetch_journey_details:
            return items

        missing = [item for item in items if first_text(item, ["id"]) and not Journey.raw_triggers(item)]
        if missing:
            logger.debug(f"Fetching detail for {len(missing)} journey(s) without triggers")
            await gather_bounded(
                [self._fetch_detail(item) for item in missing],
                self._config.max_concurrent,
            )
        return items

    async def _fetch_detail(self, item: dict[str, Any]) -> None:
        journey_id = first_text(item, ["id"])
        detail = await self._rest.get_json(f"/interaction/v1/interactions/{journey_id}")
        if not isinstance(detail, dict):
            return
        for key in ("triggers", "entryEvents"):
            if detail.get(key):
                item[key] = detail[key]

    def transform_data(self, items: list[dict[str, Any]]) -> list[Journey]:
        journeys = [journey for journey in (Journey.from_rest(item) for item in items) if journey]
        self._log_skipped(len(items), len(journeys))
        return journeys

    def store(self, records: list[Journey]) -> None:
        for journey in records:
            self.ctx.journeys[journey.id] = journey

    async def extract_relationships(self, records: list[Journey]) -> None:
        for journey in records:
            link_entry_sources(journey, self.ctx)
