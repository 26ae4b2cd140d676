"""Triggered Send collector for SFMC."""

import logging
from typing import Any

from ..types.entities import TriggeredSend
from ..types.relationships import EdgeType, EntityRef
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)

TS_PROPERTIES = [
    "CustomerKey",
    "Name",
    "Email.ID",
    "SendClassification",
    "CreatedDate",
    "DataExtensionObjectID",
]


class TriggeredSendCollector(BaseCollector[TriggeredSend]):
    """Collector for Triggered Send Definitions, keyed by CustomerKey."""

    name = "triggered_sends"
    description = "triggered sends"
    object_type = "TriggeredSendDefinition"

    async def fetch_data(self) -> list[dict[str, Any]]:
        return await self._soap.retrieve(self.object_type, TS_PROPERTIES)

    def transform_data(self, items: list[dict[str, Any]]) -> list[TriggeredSend]:
        records = [ts for ts in (TriggeredSend.from_soap(item) for item in items) if ts]
        self._log_skipped(len(items), len(records))
        return records

    def store(self, records: list[TriggeredSend]) -> None:
        for ts in records:
            self.ctx.triggered_sends[ts.id] = ts

    async def extract_relationships(self, records: list[TriggeredSend]) -> None:
        for ts in records:
            if ts.data_extension_id and ts.data_extension_id in self.ctx.data_extensions:
                self.ctx.link(
                    EntityRef.triggered_send(ts.id),
                    EntityRef.data_extension(ts.data_extension_id),
                    EdgeType.USES,
                )
