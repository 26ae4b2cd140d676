"""Per-crawl state shared by every phase.

A fresh CrawlContext is created for each crawl and discarded after
serialization, so nothing leaks between runs.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..types.entities import (
    Automation,
    DataExtension,
    FilterActivity,
    Folder,
    ImportActivity,
    Journey,
    SqlActivity,
    TriggeredSend,
)
from ..types.relationships import Edge, EdgeType, EntityKind, EntityRef, split_prefixed


AnyActivity = Union[SqlActivity, ImportActivity, FilterActivity]


@dataclass
class CrawlContext:
    """Entity dictionaries keyed by provider id, plus the edge list."""

    folders: dict[str, Folder] = field(default_factory=dict)
    data_extensions: dict[str, DataExtension] = field(default_factory=dict)
    automations: dict[str, Automation] = field(default_factory=dict)
    journeys: dict[str, Journey] = field(default_factory=dict)
    triggered_sends: dict[str, TriggeredSend] = field(default_factory=dict)
    sql_activities: dict[str, SqlActivity] = field(default_factory=dict)
    import_activities: dict[str, ImportActivity] = field(default_factory=dict)
    filter_activities: dict[str, FilterActivity] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)

    # --- Edges ---

    def add_edge(self, edge: Edge) -> None:
        """Append an edge. Duplicates are removed later by validation."""
        self.edges.append(edge)

    def link(
        self,
        source: EntityRef,
        target: EntityRef,
        edge_type: EdgeType,
        label: Optional[str] = None,
        inferred: bool = False,
    ) -> Edge:
        """Create and append an edge."""
        edge = Edge.create(source, target, edge_type, label=label, inferred=inferred)
        self.add_edge(edge)
        return edge

    # --- Lookups ---

    def find_data_extension_by_name(self, name: str) -> Optional[DataExtension]:
        """Exact, case-sensitive name lookup."""
        if not name:
            return None
        for de in self.data_extensions.values():
            if de.name == name:
                return de
        return None

    def find_data_extension_by_key(self, key: str) -> Optional[DataExtension]:
        """Exact CustomerKey lookup."""
        if not key:
            return None
        for de in self.data_extensions.values():
            if de.customer_key == key:
                return de
        return None

    def register_activity(self, activity: AnyActivity) -> None:
        """Store an activity in the dictionary for its kind."""
        if isinstance(activity, SqlActivity):
            self.sql_activities[activity.id] = activity
        elif isinstance(activity, ImportActivity):
            self.import_activities[activity.id] = activity
        else:
            self.filter_activities[activity.id] = activity

    def get_activity(self, activity_id: str) -> Optional[AnyActivity]:
        return (
            self.sql_activities.get(activity_id)
            or self.import_activities.get(activity_id)
            or self.filter_activities.get(activity_id)
        )

    def _activity_in_automations(self, activity_id: str) -> bool:
        for automation in self.automations.values():
            for activity in automation.activities:
                if activity.id == activity_id:
                    return True
        return False

    def _activity_exists(self, activity_id: str) -> bool:
        return self.get_activity(activity_id) is not None or self._activity_in_automations(activity_id)

    def _dictionaries_for(self, kind: EntityKind) -> list[dict[str, Any]]:
        if kind is EntityKind.DATA_EXTENSION:
            return [self.data_extensions]
        if kind is EntityKind.AUTOMATION:
            return [self.automations]
        if kind is EntityKind.JOURNEY:
            return [self.journeys]
        if kind is EntityKind.TRIGGERED_SEND:
            return [self.triggered_sends]
        if kind is EntityKind.ACTIVITY:
            return [self.sql_activities, self.import_activities, self.filter_activities]
        return self.node_dictionaries()

    def node_dictionaries(self) -> list[dict[str, Any]]:
        """Every dictionary whose entries become graph nodes."""
        return [
            self.data_extensions,
            self.automations,
            self.journeys,
            self.triggered_sends,
            self.sql_activities,
            self.import_activities,
            self.filter_activities,
        ]

    def node_exists(self, node: Union[EntityRef, str]) -> bool:
        """Check that a reference points at a collected entity.

        An EntityRef is checked against the dictionaries of its kind. A string
        has one known prefix stripped and is checked against every node
        dictionary.
        """
        if isinstance(node, EntityRef):
            if node.kind is EntityKind.ACTIVITY:
                return self._activity_exists(node.id)
            return any(node.id in d for d in self._dictionaries_for(node.kind))

        _, raw_id = split_prefixed(node)
        return self._is_known_raw(raw_id) or self._is_known_raw(node)

    def _is_known_raw(self, raw_id: str) -> bool:
        return any(raw_id in d for d in self.node_dictionaries()) or self._activity_in_automations(raw_id)

    def resolve_ref(self, raw_id: str) -> EntityRef:
        """Resolve a raw id in the fixed priority order.

        DataExtension, Automation, Journey, TriggeredSend, then an activity
        scan, falling back to an Unknown reference.
        """
        if raw_id in self.data_extensions:
            return EntityRef.data_extension(raw_id)
        if raw_id in self.automations:
            return EntityRef.automation(raw_id)
        if raw_id in self.journeys:
            return EntityRef.journey(raw_id)
        if raw_id in self.triggered_sends:
            return EntityRef.triggered_send(raw_id)
        if self._activity_exists(raw_id):
            return EntityRef.activity(raw_id)
        return EntityRef(kind=EntityKind.UNKNOWN, id=raw_id)

    def add_node_prefix(self, node_id: Union[EntityRef, str]) -> str:
        """Return the output node id for a reference or raw/prefixed id.

        Idempotent: feeding the result back in returns it unchanged.
        """
        if isinstance(node_id, EntityRef):
            return node_id.prefixed

        kind, raw_id = split_prefixed(node_id)
        if kind is not None:
            if kind is EntityKind.UNKNOWN or self.node_exists(EntityRef(kind=kind, id=raw_id)):
                return node_id

        if self._is_known_raw(node_id):
            return self.resolve_ref(node_id).prefixed

        if kind is not None:
            return node_id

        return EntityRef(kind=EntityKind.UNKNOWN, id=node_id).prefixed

    def counts(self) -> dict[str, int]:
        """Entry counts per dictionary."""
        return {
            "folders": len(self.folders),
            "dataExtensions": len(self.data_extensions),
            "automations": len(self.automations),
            "journeys": len(self.journeys),
            "triggeredSends": len(self.triggered_sends),
            "sqlActivities": len(self.sql_activities),
            "importActivities": len(self.import_activities),
            "filterActivities": len(self.filter_activities),
        }
