"""Relationship inference beyond explicit id references."""

from .journey_entry import link_entry_sources, resolve_entry_source
from .sql_parser import (
    extract_sources,
    extract_table_candidates,
    match_data_extension,
    parse_query_text_for_sources,
)

__all__ = [
    "extract_sources",
    "extract_table_candidates",
    "link_entry_sources",
    "match_data_extension",
    "parse_query_text_for_sources",
    "resolve_entry_source",
]
