"""Graph file writer using orjson."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import orjson

logger = logging.getLogger(__name__)


def _json_default(obj: Any) -> Any:
    """Default serializer for non-standard types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    raise TypeError(f"Cannot serialize {type(obj)}")


def graph_json_bytes(graph: dict[str, Any], indent: bool = True) -> bytes:
    """Serialize a graph document to JSON bytes."""
    option = orjson.OPT_NON_STR_KEYS
    if indent:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(graph, option=option, default=_json_default)


def write_graph(graph: dict[str, Any], path: Path, indent: bool = True) -> Path:
    """Write a graph document to ``path``, creating parent directories.

    Returns:
        The written path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(graph_json_bytes(graph, indent=indent))

    metadata = graph.get("metadata", {})
    logger.info(
        f"Wrote {metadata.get('totalNodes', 0)} nodes and "
        f"{metadata.get('totalEdges', 0)} edges to {path}"
    )
    return path
