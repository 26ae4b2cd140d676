"""Type definitions for SFMC entities and graph relationships."""

from .entities import (
    Activity,
    Automation,
    DataExtension,
    EntryTrigger,
    FilterActivity,
    Folder,
    ImportActivity,
    Journey,
    SqlActivity,
    TriggeredSend,
)
from .relationships import (
    EDGE_LABELS,
    READS_FROM_LABEL,
    Edge,
    EdgeType,
    EntityKind,
    EntityRef,
    split_prefixed,
)

__all__ = [
    # Entities
    "Activity",
    "Automation",
    "DataExtension",
    "EntryTrigger",
    "FilterActivity",
    "Folder",
    "ImportActivity",
    "Journey",
    "SqlActivity",
    "TriggeredSend",
    # Relationships
    "EDGE_LABELS",
    "READS_FROM_LABEL",
    "Edge",
    "EdgeType",
    "EntityKind",
    "EntityRef",
    "split_prefixed",
]
