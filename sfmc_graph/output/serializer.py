"""Graph serialization.

Turns the validated CrawlContext into the node/edge/metadata document the
presentation layer consumes. Field names here are a wire contract.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Optional, Union

from .. import __version__
from ..clients.transport import TransportStats
from ..crawler.context import CrawlContext
from ..types.entities import FilterActivity, ImportActivity, SqlActivity
from ..types.relationships import Edge, EntityRef

logger = logging.getLogger(__name__)


def _node(ref: EntityRef, label: str, node_type: str, data: dict[str, Any]) -> dict[str, Any]:
    return {"id": ref.prefixed, "label": label, "type": node_type, "data": data}


def _activity_data(activity: Union[SqlActivity, ImportActivity, FilterActivity]) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": activity.name,
        "type": activity.kind,
        "automationId": activity.automation_id,
        "createdDate": activity.created_date,
        "modifiedDate": activity.modified_date,
    }
    if isinstance(activity, SqlActivity):
        data["targetId"] = activity.target_id
    elif isinstance(activity, ImportActivity):
        data["customerKey"] = activity.customer_key
        data["destinationObjectId"] = activity.destination_object_id
    else:
        data["dataSourceObjectId"] = activity.data_source_object_id
    return data


def build_nodes(ctx: CrawlContext) -> list[dict[str, Any]]:
    """One node per dictionary entry; activities once per id."""
    nodes = []

    for de in ctx.data_extensions.values():
        nodes.append(
            _node(
                EntityRef.data_extension(de.id),
                de.name,
                "DataExtension",
                {
                    "name": de.name,
                    "key": de.customer_key,
                    "path": de.folder_path,
                    "isSendable": de.is_sendable,
                    "createdDate": de.created_date,
                    "modifiedDate": de.modified_date,
                },
            )
        )

    for automation in ctx.automations.values():
        nodes.append(
            _node(
                EntityRef.automation(automation.id),
                automation.name,
                "Automation",
                {
                    "name": automation.name,
                    "status": automation.status,
                    "path": automation.folder_path,
                    "createdDate": automation.created_date,
                    "modifiedDate": automation.modified_date,
                    "activityCount": len(automation.activities),
                },
            )
        )

    seen_activities: set[str] = set()
    for collection in (ctx.sql_activities, ctx.import_activities, ctx.filter_activities):
        for activity in collection.values():
            if activity.id in seen_activities:
                continue
            seen_activities.add(activity.id)
            nodes.append(
                _node(EntityRef.activity(activity.id), activity.name, activity.kind, _activity_data(activity))
            )

    for journey in ctx.journeys.values():
        nodes.append(
            _node(
                EntityRef.journey(journey.id),
                journey.name,
                "Journey",
                {
                    "name": journey.name,
                    "status": journey.status,
                    "version": journey.version,
                    "path": journey.folder_path,
                    "createdDate": journey.created_date,
                    "modifiedDate": journey.modified_date,
                },
            )
        )

    for ts in ctx.triggered_sends.values():
        nodes.append(
            _node(
                EntityRef.triggered_send(ts.id),
                ts.name,
                "TriggeredSend",
                {
                    "name": ts.name,
                    "customerKey": ts.id,
                    "emailId": ts.email_id,
                    "sendClassification": ts.send_classification,
                    "createdDate": ts.created_date,
                },
            )
        )

    return nodes


def serialize_edge(ctx: CrawlContext, edge: Edge) -> dict[str, Any]:
    source = ctx.add_node_prefix(edge.source)
    target = ctx.add_node_prefix(edge.target)
    return {
        "id": f"{source}_{target}",
        "source": source,
        "target": target,
        "type": edge.type.value,
        "label": edge.label,
        "inferred": edge.inferred,
    }


def build_performance(
    stats: TransportStats,
    duration_seconds: float,
    object_count: int,
) -> dict[str, Any]:
    """Diagnostic performance block."""
    api_calls = stats.api_calls
    return {
        "durationSeconds": round(duration_seconds, 2),
        "apiCalls": api_calls,
        "errorCount": stats.error_count,
        "retries": stats.retries,
        "successRate": f"{stats.success_rate:.2f}%",
        "avgTimePerApiCall": round(duration_seconds / api_calls, 3) if api_calls else 0,
        "objectsPerSecond": round(object_count / duration_seconds, 2) if duration_seconds > 0 else 0,
    }


def serialize(
    ctx: CrawlContext,
    stats: TransportStats,
    duration_seconds: Optional[float] = None,
    crawled_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """Build the output graph document.

    Args:
        ctx: Validated crawl context.
        stats: Transport counters for the crawl.
        duration_seconds: Crawl duration; defaults to the transport's elapsed time.
        crawled_at: Crawl timestamp; defaults to now (UTC).

    Returns:
        Dict with ``nodes``, ``edges`` and ``metadata``.
    """
    if duration_seconds is None:
        duration_seconds = stats.elapsed_seconds
    crawled_at = crawled_at or datetime.now(timezone.utc)

    nodes = build_nodes(ctx)
    edges = [serialize_edge(ctx, edge) for edge in ctx.edges]

    validation = ctx.stats.get("validation")
    metadata = {
        "totalNodes": len(nodes),
        "totalEdges": len(edges),
        "dataExtensions": len(ctx.data_extensions),
        "automations": len(ctx.automations),
        "journeys": len(ctx.journeys),
        "triggeredSends": len(ctx.triggered_sends),
        "crawledAt": crawled_at.isoformat(),
        "crawlerVersion": __version__,
        "performance": build_performance(stats, duration_seconds, len(nodes)),
        "collections": ctx.counts(),
        "edgeTypes": dict(Counter(edge["type"] for edge in edges)),
        "inferredEdges": sum(1 for edge in edges if edge["inferred"]),
        "droppedEdges": validation.dropped_edges if validation else 0,
    }

    logger.info(f"Serialized graph: {len(nodes)} nodes, {len(edges)} edges")
    return {"nodes": nodes, "edges": edges, "metadata": metadata}
