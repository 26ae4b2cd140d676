"""Folder collector for SFMC.

Retrieves active DataFolders so later phases can build folder paths.
"""

import logging
from typing import Any

from ..clients.soap_client import SimpleFilter
from ..types.entities import Folder
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)

FOLDER_PROPERTIES = ["ID", "Name", "ParentFolder.ID", "ContentType"]


class FolderCollector(BaseCollector[Folder]):
    """Collector for SFMC folders."""

    name = "folders"
    description = "folders"
    object_type = "DataFolder"

    async def fetch_data(self) -> list[dict[str, Any]]:
        return await self._soap.retrieve(
            self.object_type,
            FOLDER_PROPERTIES,
            SimpleFilter("IsActive", "equals", "true"),
        )

    def transform_data(self, items: list[dict[str, Any]]) -> list[Folder]:
        folders = [folder for folder in (Folder.from_soap(item) for item in items) if folder]
        self._log_skipped(len(items), len(folders))
        return folders

    def store(self, records: list[Folder]) -> None:
        for folder in records:
            self.ctx.folders[folder.id] = folder
