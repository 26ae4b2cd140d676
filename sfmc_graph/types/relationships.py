"""Entity references and typed edges for the dependency graph.

Entities are referenced internally by ``EntityRef`` (kind + raw id). The
prefixed string form (``de_<id>``, ``auto_<id>``...) only appears at the
output boundary.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class EntityKind(str, Enum):
    """Kinds of graph nodes."""

    DATA_EXTENSION = "DataExtension"
    AUTOMATION = "Automation"
    JOURNEY = "Journey"
    TRIGGERED_SEND = "TriggeredSend"
    ACTIVITY = "Activity"
    UNKNOWN = "Unknown"


KIND_PREFIXES: dict[EntityKind, str] = {
    EntityKind.DATA_EXTENSION: "de",
    EntityKind.AUTOMATION: "auto",
    EntityKind.JOURNEY: "journey",
    EntityKind.TRIGGERED_SEND: "ts",
    EntityKind.ACTIVITY: "activity",
    EntityKind.UNKNOWN: "node",
}

PREFIX_KINDS: dict[str, EntityKind] = {prefix: kind for kind, prefix in KIND_PREFIXES.items()}


def split_prefixed(value: str) -> tuple[Optional[EntityKind], str]:
    """Split ``<prefix>_<rawId>`` into its kind and raw id.

    Returns ``(None, value)`` when the string carries no known prefix.
    """
    head, sep, rest = value.partition("_")
    if sep and rest and head in PREFIX_KINDS:
        return PREFIX_KINDS[head], rest
    return None, value


class EntityRef(BaseModel):
    """Reference to one collected entity."""

    kind: EntityKind = Field(description="Dictionary the id lives in")
    id: str = Field(description="Raw provider id")

    model_config = {"frozen": True}

    @property
    def prefix(self) -> str:
        return KIND_PREFIXES[self.kind]

    @property
    def prefixed(self) -> str:
        """Output node id, e.g. ``de_<id>``."""
        return f"{self.prefix}_{self.id}"

    @classmethod
    def data_extension(cls, entity_id: str) -> "EntityRef":
        return cls(kind=EntityKind.DATA_EXTENSION, id=entity_id)

    @classmethod
    def automation(cls, entity_id: str) -> "EntityRef":
        return cls(kind=EntityKind.AUTOMATION, id=entity_id)

    @classmethod
    def journey(cls, entity_id: str) -> "EntityRef":
        return cls(kind=EntityKind.JOURNEY, id=entity_id)

    @classmethod
    def triggered_send(cls, entity_id: str) -> "EntityRef":
        return cls(kind=EntityKind.TRIGGERED_SEND, id=entity_id)

    @classmethod
    def activity(cls, entity_id: str) -> "EntityRef":
        return cls(kind=EntityKind.ACTIVITY, id=entity_id)

    def __str__(self) -> str:
        return self.prefixed


class EdgeType(str, Enum):
    """Edge types consumed by the presentation layer."""

    CONTAINS = "contains"
    TARGETS = "targets"
    IMPORTS = "imports"
    FILTERS_FROM = "filters_from"
    USES = "uses"
    ENTRY_SOURCE = "entrySource"


# Default display labels
EDGE_LABELS: dict[EdgeType, str] = {
    EdgeType.CONTAINS: "contains",
    EdgeType.TARGETS: "writes to",
    EdgeType.IMPORTS: "imports to",
    EdgeType.FILTERS_FROM: "filters from",
    EdgeType.USES: "uses data from",
    EdgeType.ENTRY_SOURCE: "entry source",
}

READS_FROM_LABEL = "reads from"


class Edge(BaseModel):
    """Directed, typed relationship between two entities."""

    source: EntityRef = Field(description="Source entity")
    target: EntityRef = Field(description="Target entity")
    type: EdgeType = Field(description="Relationship type")
    label: str = Field(default="", description="Display label")
    inferred: bool = Field(default=False, description="Derived heuristically (SQL text or name match)")

    model_config = {"frozen": True}

    @property
    def key(self) -> tuple[EntityRef, EntityRef, EdgeType]:
        """Identity used for deduplication."""
        return (self.source, self.target, self.type)

    @classmethod
    def create(
        cls,
        source: EntityRef,
        target: EntityRef,
        edge_type: EdgeType,
        label: Optional[str] = None,
        inferred: bool = False,
    ) -> "Edge":
        return cls(
            source=source,
            target=target,
            type=edge_type,
            label=label or EDGE_LABELS[edge_type],
            inferred=inferred,
        )
