"""Validation and cleanup run once after every collector has finished.

This is the only place edges are filtered.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..types.relationships import Edge, EntityKind
from .context import CrawlContext

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """What validation changed."""

    names_filled: int = 0
    dropped_edges: int = 0
    duplicate_edges: int = 0


def _clean_entity(entity: Any, kind: str, key: Optional[str], report: ValidationReport) -> None:
    name = (entity.name or "").strip()
    if key is not None:
        key = key.strip()
        entity.customer_key = key

    if not name:
        name = key or f"Unnamed_{kind}_{entity.id}"
        report.names_filled += 1

    entity.name = name


def clean_names(ctx: CrawlContext, report: Optional[ValidationReport] = None) -> ValidationReport:
    """Trim names/keys and fill empty names with the key or a placeholder."""
    report = report or ValidationReport()

    for de in ctx.data_extensions.values():
        _clean_entity(de, "DataExtension", de.customer_key, report)
    for imp in ctx.import_activities.values():
        _clean_entity(imp, "Import", imp.customer_key, report)

    for folder in ctx.folders.values():
        _clean_entity(folder, "Folder", None, report)
    for automation in ctx.automations.values():
        _clean_entity(automation, EntityKind.AUTOMATION.value, None, report)
    for journey in ctx.journeys.values():
        _clean_entity(journey, EntityKind.JOURNEY.value, None, report)
    for sql in ctx.sql_activities.values():
        _clean_entity(sql, "SQL", None, report)
    for flt in ctx.filter_activities.values():
        _clean_entity(flt, "Filter", None, report)

    # TriggeredSends are keyed by CustomerKey
    for ts in ctx.triggered_sends.values():
        name = (ts.name or "").strip()
        if not name:
            name = ts.id.strip() or f"Unnamed_{EntityKind.TRIGGERED_SEND.value}_{ts.id}"
            report.names_filled += 1
        ts.name = name

    return report


def validate_and_clean(ctx: CrawlContext) -> list[Edge]:
    """Repair names and drop dangling or duplicate edges.

    After this runs every edge endpoint exists in the context dictionaries.

    Returns:
        The cleaned edge list, also stored back on the context.
    """
    report = clean_names(ctx)

    cleaned: list[Edge] = []
    seen: set[tuple] = set()

    for edge in ctx.edges:
        if not (ctx.node_exists(edge.source) and ctx.node_exists(edge.target)):
            report.dropped_edges += 1
            logger.debug(f"Dropping dangling edge {edge.source} -> {edge.target} ({edge.type.value})")
            continue

        if edge.key in seen:
            report.duplicate_edges += 1
            continue

        seen.add(edge.key)
        cleaned.append(edge)

    if report.dropped_edges:
        logger.warning(f"Dropped {report.dropped_edges} edge(s) with missing endpoints")

    logger.info(
        f"Validation complete: {len(cleaned)} edges kept, "
        f"{report.duplicate_edges} duplicates removed, {report.names_filled} names filled"
    )

    ctx.edges = cleaned
    ctx.stats["validation"] = report
    return cleaned
