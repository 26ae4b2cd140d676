"""Crawl state, folder paths and validation.

The orchestrator lives in ``sfmc_graph.crawler.metadata_crawler``.
"""

from .context import CrawlContext
from .folder_paths import FolderPathResolver
from .validation import ValidationReport, validate_and_clean

__all__ = [
    "CrawlContext",
    "FolderPathResolver",
    "ValidationReport",
    "validate_and_clean",
]
