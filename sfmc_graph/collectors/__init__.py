"""Per-entity collectors, run in a fixed phase order by the crawler."""

from .automation import AutomationCollector
from .base_collector import BaseCollector, CollectorResult, gather_bounded
from .data_extension import DataExtensionCollector
from .folder import FolderCollector
from .journey import JourneyCollector
from .triggered_send import TriggeredSendCollector

# Phase order: later phases link to entities collected by earlier ones
COLLECTOR_PHASES = [
    FolderCollector,
    DataExtensionCollector,
    AutomationCollector,
    JourneyCollector,
    TriggeredSendCollector,
]

__all__ = [
    "AutomationCollector",
    "BaseCollector",
    "COLLECTOR_PHASES",
    "CollectorResult",
    "DataExtensionCollector",
    "FolderCollector",
    "JourneyCollector",
    "TriggeredSendCollector",
    "gather_bounded",
]
