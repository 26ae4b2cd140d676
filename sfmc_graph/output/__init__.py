"""Graph serialization and output."""

from .graph_writer import graph_json_bytes, write_graph
from .serializer import serialize

__all__ = ["graph_json_bytes", "serialize", "write_graph"]
