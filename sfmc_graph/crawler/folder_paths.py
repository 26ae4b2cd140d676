"""Folder path resolution for SFMC folder hierarchies.

Builds paths like "Data Extensions/Marketing/2025" by walking parent
references. A resolver is created per crawl; its memo never outlives it.
"""

import logging
from typing import Optional

from ..types.entities import Folder
from .context import CrawlContext

logger = logging.getLogger(__name__)

ROOT_IDS = ("", "0")
MAX_DEPTH = 64


class FolderPathResolver:
    """Resolves folder ids to slash-joined ancestor paths.

    Missing folders end the walk, and a parent chain that revisits a folder
    is treated as a cycle: the path accumulated so far is returned.
    """

    def __init__(
        self,
        folders: dict[str, Folder],
        separator: str = "/",
        max_depth: int = MAX_DEPTH,
    ):
        """Initialize the resolver.

        Args:
            folders: Dictionary of folder ID -> Folder.
            separator: String to join path segments.
            max_depth: Upper bound on ancestors walked for one path.
        """
        self._folders = folders
        self._separator = separator
        self._max_depth = max_depth
        self._cache: dict[str, str] = {}
        self._missing: set[str] = set()
        self._cycles: set[str] = set()

    def build_path(self, folder_id: Optional[str]) -> str:
        """Build the path for a folder.

        Args:
            folder_id: ID of the folder to build path for.

        Returns:
            Path string, or empty string if the folder is unknown.
        """
        if folder_id is None:
            return ""

        folder_id = str(folder_id)
        if folder_id in ROOT_IDS:
            return ""

        if folder_id in self._cache:
            return self._cache[folder_id]

        names: list[str] = []
        on_path: set[str] = set()
        current: Optional[str] = folder_id

        while current is not None and current not in ROOT_IDS:
            if current in on_path:
                self._cycles.add(current)
                logger.warning(f"Folder cycle detected at {current} while resolving {folder_id}")
                break

            if len(on_path) >= self._max_depth:
                logger.warning(f"Folder depth limit {self._max_depth} reached resolving {folder_id}")
                break

            folder = self._folders.get(current)
            if folder is None:
                self._missing.add(current)
                break

            on_path.add(current)
            name = folder.name.strip()
            if name:
                names.append(name)
            current = str(folder.parent_id) if folder.parent_id is not None else None

        path = self._separator.join(reversed(names))
        self._cache[folder_id] = path
        return path

    def apply(self, ctx: CrawlContext) -> None:
        """Set folder_path on every DataExtension, Automation and Journey."""
        for collection in (ctx.data_extensions, ctx.automations, ctx.journeys):
            for entity in collection.values():
                entity.folder_path = self.build_path(entity.folder_id)

        if self._missing:
            logger.debug(f"{len(self._missing)} referenced folder(s) not found")

    def get_missing_folders(self) -> set[str]:
        """Get IDs of folders referenced but not in data."""
        return self._missing.copy()

    def get_cyclic_folders(self) -> set[str]:
        """Get IDs where a parent cycle was detected."""
        return self._cycles.copy()
