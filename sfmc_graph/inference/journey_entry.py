"""Journey entry-source resolution.

A trigger's Data Extension is resolved by id first. The exact-name lookup
only runs when no id was given or the id does not belong to a collected DE.
"""

import logging
from typing import Optional

from ..crawler.context import CrawlContext
from ..types.entities import DataExtension, EntryTrigger, Journey
from ..types.relationships import Edge, EdgeType, EntityRef

logger = logging.getLogger(__name__)


def resolve_entry_source(
    trigger: EntryTrigger,
    ctx: CrawlContext,
) -> Optional[tuple[DataExtension, bool]]:
    """Find the Data Extension feeding an entry trigger.

    Returns:
        ``(data_extension, by_name)`` or None when nothing resolves.
    """
    if trigger.data_extension_id:
        de = ctx.data_extensions.get(trigger.data_extension_id)
        if de is not None:
            return de, False

    if trigger.data_extension_name:
        de = ctx.find_data_extension_by_name(trigger.data_extension_name)
        if de is not None:
            return de, True

    return None


def link_entry_sources(journey: Journey, ctx: CrawlContext) -> list[Edge]:
    """Emit Journey -> DE ``entrySource`` edges for each resolvable trigger."""
    edges = []
    for trigger in journey.entry_triggers:
        resolved = resolve_entry_source(trigger, ctx)
        if resolved is None:
            if trigger.data_extension_id or trigger.data_extension_name:
                logger.debug(
                    f"Journey {journey.id}: entry source "
                    f"{trigger.data_extension_id or trigger.data_extension_name!r} not found"
                )
            continue

        de, by_name = resolved
        edges.append(
            ctx.link(
                EntityRef.journey(journey.id),
                EntityRef.data_extension(de.id),
                EdgeType.ENTRY_SOURCE,
                inferred=by_name,
            )
        )
    return edges
