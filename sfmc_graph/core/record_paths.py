"""Path lookups over loosely-shaped SOAP/REST records.

SFMC returns the same logical field under different shapes depending on the
endpoint, so collectors read raw records through small path expressions
instead of chained ``.get()`` calls.

Supported segments:
- "field" - Direct field access
- "field.subfield" - Nested access (also used for SOAP properties like "ParentFolder.ID")
- "array[]" - Array iteration; a single dict is treated as a one-element array
- "field=value" - Keep the current object only if field matches value

Examples:
    evaluate_path(automation, "steps[].activities[].objectTypeId=43")
    -> Returns every import activity descriptor in the automation

    first_value(trigger, ["arguments.dataExtensionId", "dataExtensionId"])
    -> Returns the first non-empty id in priority order
"""

import re
from typing import Any, Iterator, Optional


class PathEvaluator:
    """Evaluates path expressions against nested dicts and lists."""

    # Matches: fieldName, fieldName[], fieldName=value
    SEGMENT_PATTERN = re.compile(r"^([^.\[\]=]+)(\[\])?(?:=(.+))?$")

    def evaluate(self, obj: Any, path: str) -> list[Any]:
        """Evaluate a path expression against an object.

        Returns:
            List of matching values, None values removed.

        Examples:
            >>> PathEvaluator().evaluate({"a": [{"b": 1}, {"b": 2}]}, "a[].b")
            [1, 2]
        """
        if not path or obj is None:
            return []
        return [value for value in self._walk(obj, path.split(".")) if value is not None]

    def _walk(self, obj: Any, segments: list[str]) -> Iterator[Any]:
        if not segments:
            yield obj
            return

        if isinstance(obj, list):
            for item in obj:
                yield from self._walk(item, segments)
            return

        if not isinstance(obj, dict):
            return

        match = self.SEGMENT_PATTERN.match(segments[0])
        if not match:
            return

        field_name, array_marker, expected = match.groups()
        remaining = segments[1:]
        value = obj.get(field_name)
        if value is None:
            return

        if expected is not None:
            if _matches_value(value, expected):
                yield from self._walk(obj, remaining)
            return

        if array_marker:
            items = value if isinstance(value, list) else [value]
            for item in items:
                yield from self._walk(item, remaining)
            return

        yield from self._walk(value, remaining)


def _matches_value(value: Any, expected: str) -> bool:
    """Compare numerically when both sides look numeric (activity type ids)."""
    try:
        expected_num = int(expected)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value == expected_num
        if isinstance(value, str) and value.strip().isdigit():
            return int(value) == expected_num
    except ValueError:
        pass

    return str(value) == expected


_default_evaluator = PathEvaluator()


def evaluate_path(obj: Any, path: str) -> list[Any]:
    """Evaluate a single path expression with the shared evaluator."""
    return _default_evaluator.evaluate(obj, path)


def first_value(obj: Any, paths: list[str]) -> Optional[Any]:
    """Return the first non-empty value found, trying paths in order.

    Empty strings count as missing so a blank field never shadows a later
    path.
    """
    for path in paths:
        for value in _default_evaluator.evaluate(obj, path):
            if isinstance(value, str):
                if value.strip():
                    return value.strip()
            elif not isinstance(value, (dict, list)):
                return value
    return None


def first_text(obj: Any, paths: list[str]) -> Optional[str]:
    """Like first_value but always returns a string (or None)."""
    value = first_value(obj, paths)
    return None if value is None else str(value)


def find_activities_by_type(automation: dict[str, Any], activity_type_id: int) -> list[dict[str, Any]]:
    """Find all step activities of a specific type in an automation.

    Args:
        automation: Automation object with ``steps[].activities[]``.
        activity_type_id: Activity type ID (300 query, 43 import, 303 filter).

    Returns:
        List of activity descriptors matching the type.
    """
    return evaluate_path(automation, f"steps[].activities[].objectTypeId={activity_type_id}")
