"""SQL text analysis for Query Activities.

Best-effort: FROM/JOIN clauses and comma-separated FROM lists are scanned
with regexes and the table names found are matched against known Data
Extensions. Subqueries and unusual quoting can be missed, and short generic
DE names can produce false matches, so every edge produced here is marked
``inferred``.
"""

import logging
import re
from typing import Iterable

from ..types.entities import DataExtension, SqlActivity
from ..types.relationships import READS_FROM_LABEL, Edge, EdgeType, EntityRef

logger = logging.getLogger(__name__)

# FROM and every JOIN flavour: LEFT/RIGHT/FULL [OUTER], INNER, CROSS, OUTER
_CLAUSE = (
    r"\b(?:FROM|(?:(?:LEFT|RIGHT|FULL)(?:\s+OUTER)?\s+|INNER\s+|CROSS\s+|OUTER\s+)?JOIN)\s+"
)

# Optional ENT. / [ENT]. / "ENT". prefix in front of a table identifier
_SCHEMA = r"""(?:(?:\[[^\]]+\]|"[^"]+"|[A-Za-z_]\w*)\s*\.\s*)?"""

# Each identifier shape is its own pattern; group 1 is the candidate.
# A segment followed by "." is a schema, never a table.
_REFERENCES = [
    # [Table Name], ENT.[Table Name], [ENT].[Table Name]
    _SCHEMA + r"\[([^\]]+)\](?!\s*\.)",
    # "Table Name", "ENT"."Table Name"
    _SCHEMA + r'"([^"]+)"(?!\s*\.)',
    # 'Table Name'
    r"'([^']+)'(?!\s*\.)",
    # ENT.TableName (full qualified name)
    r"([A-Za-z_]\w*\.[A-Za-z_]\w*)\b(?!\s*\.)",
    # TableName, ENT.TableName, [ENT].TableName (last segment only)
    _SCHEMA + r"([A-Za-z_]\w*)\b(?!\s*\.)",
]

TABLE_PATTERNS = [re.compile(_CLAUSE + reference, re.IGNORECASE) for reference in _REFERENCES]

# Same shapes anchored at the start of a FROM list item
LIST_ITEM_PATTERNS = [re.compile(r"\s*" + reference, re.IGNORECASE) for reference in _REFERENCES]

# Body of a FROM clause up to the next clause keyword, JOIN, paren or end
FROM_LIST_PATTERN = re.compile(
    r"\bFROM\s+([^;()]*?)"
    r"(?=\b(?:WHERE|GROUP|ORDER|HAVING|UNION|EXCEPT|INTERSECT|ON|JOIN|LEFT|RIGHT|FULL|INNER|CROSS|OUTER)\b|[;()]|$)",
    re.IGNORECASE,
)

# Commas outside of [..], ".." and '..' identifiers
LIST_SEPARATOR_PATTERN = re.compile(r"""\[[^\]]*\]|"[^"]*"|'[^']*'|(,)""")

CTE_PATTERN = re.compile(r"(?:\bWITH|,)\s*([A-Za-z_]\w*)\s+AS\s*\(", re.IGNORECASE)
LINE_COMMENT_PATTERN = re.compile(r"--[^\n]*")
BLOCK_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)

SQL_KEYWORDS = frozenset(
    {
        "select", "from", "where", "join", "inner", "left", "right", "outer", "on",
        "and", "or", "not", "null", "as", "case", "when", "then", "else", "end",
        "union", "group", "by", "order", "having", "distinct", "top", "limit",
        "offset", "count", "sum", "avg", "min", "max", "cast", "convert",
        "with", "cross", "full", "lateral",
    }
)


def _strip_comments(sql: str) -> str:
    sql = BLOCK_COMMENT_PATTERN.sub(" ", sql)
    return LINE_COMMENT_PATTERN.sub(" ", sql)


def _from_list_items(text: str) -> list[tuple[int, int, str]]:
    """Tables after the first in ``FROM a x, b y`` lists."""
    found: list[tuple[int, int, str]] = []
    for listing in FROM_LIST_PATTERN.finditer(text):
        end = listing.end(1)
        for separator in LIST_SEPARATOR_PATTERN.finditer(text, listing.start(1), end):
            if separator.group(1) is None:
                continue
            for order, pattern in enumerate(LIST_ITEM_PATTERNS):
                match = pattern.match(text, separator.end(), end)
                if match:
                    found.append((match.start(1), order, match.group(1).strip()))
    return found


def extract_table_candidates(sql: str) -> list[str]:
    """Extract table identifiers referenced by FROM/JOIN clauses.

    Candidates keep their original case, are ordered by position in the
    text, and are deduplicated case-insensitively. SQL keywords and CTE
    names are removed.

    Args:
        sql: Raw query text.

    Returns:
        List of candidate table names.
    """
    if not sql:
        return []

    text = _strip_comments(sql)
    cte_names = {match.group(1).lower() for match in CTE_PATTERN.finditer(text)}

    found: list[tuple[int, int, str]] = []
    for order, pattern in enumerate(TABLE_PATTERNS):
        for match in pattern.finditer(text):
            found.append((match.start(1), order, match.group(1).strip()))
    found.extend(_from_list_items(text))

    candidates: list[str] = []
    seen: set[str] = set()
    for _, _, candidate in sorted(found):
        lowered = candidate.lower()
        if not candidate or lowered in seen:
            continue
        if lowered in SQL_KEYWORDS or lowered in cte_names:
            continue
        seen.add(lowered)
        candidates.append(candidate)

    return candidates


def match_data_extension(candidate: str, data_extensions: Iterable[DataExtension]) -> list[DataExtension]:
    """Match one candidate against DE names and keys.

    Case-insensitive equality on name or key wins; otherwise any DE whose
    name contains the candidate, or is contained in it, matches.
    """
    needle = candidate.strip().lower()
    if not needle:
        return []

    exact: list[DataExtension] = []
    partial: list[DataExtension] = []

    for de in data_extensions:
        name = de.name.strip().lower()
        key = de.customer_key.strip().lower()

        if needle == name or (key and needle == key):
            exact.append(de)
        elif name and (needle in name or name in needle):
            partial.append(de)

    return exact or partial


def extract_sources(sql: str, data_extensions: Iterable[DataExtension]) -> list[str]:
    """Return the table candidates in ``sql`` that match a known DE.

    Example:
        ``extract_sources("SELECT * FROM _BusinessUnitUnsubscribes bu", des)``
        returns ``["_BusinessUnitUnsubscribes"]`` when a DE of that name or
        key is known, and ``[]`` otherwise.
    """
    known = list(data_extensions)
    return [candidate for candidate in extract_table_candidates(sql) if match_data_extension(candidate, known)]


def parse_query_text_for_sources(
    activity: SqlActivity,
    data_extensions: Iterable[DataExtension],
) -> list[Edge]:
    """Infer "reads from" edges DE -> SQL activity from the query text."""
    known = list(data_extensions)
    edges: list[Edge] = []
    matched: set[str] = set()

    for candidate in extract_table_candidates(activity.query_text):
        for de in match_data_extension(candidate, known):
            if de.id in matched:
                continue
            matched.add(de.id)
            edges.append(
                Edge.create(
                    EntityRef.data_extension(de.id),
                    EntityRef.activity(activity.id),
                    EdgeType.USES,
                    label=READS_FROM_LABEL,
                    inferred=True,
                )
            )

    if edges:
        logger.debug(f"Query {activity.id} reads from {len(edges)} data extension(s)")

    return edges
