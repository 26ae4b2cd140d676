"""Data Extension collector for SFMC."""

import logging
from typing import Any

from ..types.entities import DataExtension
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)

DE_PROPERTIES = [
    "ObjectID",
    "CustomerKey",
    "Name",
    "CategoryID",
    "IsSendable",
    "CreatedDate",
    "ModifiedDate",
]


class DataExtensionCollector(BaseCollector[DataExtension]):
    """Collector for SFMC Data Extensions."""

    name = "data_extensions"
    description = "data extensions"
    object_type = "DataExtension"

    async def fetch_data(self) -> list[dict[str, Any]]:
        return await self._soap.retrieve(self.object_type, DE_PROPERTIES)

    def transform_data(self, items: list[dict[str, Any]]) -> list[DataExtension]:
        records = [de for de in (DataExtension.from_soap(item) for item in items) if de]
        self._log_skipped(len(items), len(records))
        return records

    def store(self, records: list[DataExtension]) -> None:
        for de in records:
            self.ctx.data_extensions[de.id] = de
