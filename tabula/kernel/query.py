"""
Tabula Kernel — Query

The one shared read path for every view: search, filter, sort, and
visible-property selection. The store, the reducer (select-all) and the
projection engine all go through here.

Pure functions. No side effects. Never raises on malformed filter or sort
input: bad operators pass, non-numeric values compare as NaN.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Any

from tabula.kernel.types import DEFAULT_VIEW_TYPE
from tabula.kernel.values import (
    MISSING,
    compare_values,
    is_empty,
    strict_equals,
    to_js_number,
    to_js_string,
)

# ---------------------------------------------------------------------------
# Filter evaluator
# ---------------------------------------------------------------------------


def _value_of(record: dict[str, Any], property_id: Any) -> Any:
    props = record.get("properties") or {}
    if not isinstance(props, dict):
        return MISSING
    return props.get(property_id, MISSING)


def _op_equals(value: Any, target: Any) -> bool:
    return strict_equals(value, target)


def _op_not_equals(value: Any, target: Any) -> bool:
    return not strict_equals(value, target)


def _op_contains(value: Any, target: Any) -> bool:
    return to_js_string(target).lower() in to_js_string(value).lower()


def _op_starts_with(value: Any, target: Any) -> bool:
    return to_js_string(value).lower().startswith(to_js_string(target).lower())


def _op_ends_with(value: Any, target: Any) -> bool:
    return to_js_string(value).lower().endswith(to_js_string(target).lower())


def _op_is_empty(value: Any, target: Any) -> bool:
    return is_empty(value)


def _op_is_not_empty(value: Any, target: Any) -> bool:
    return not is_empty(value)


def _op_greater_than(value: Any, target: Any) -> bool:
    # NaN on either side compares False
    return to_js_number(value) > to_js_number(target)


def _op_less_than(value: Any, target: Any) -> bool:
    return to_js_number(value) < to_js_number(target)


_OPERATORS: dict[str, Any] = {
    "equals": _op_equals,
    "not_equals": _op_not_equals,
    "contains": _op_contains,
    "starts_with": _op_starts_with,
    "ends_with": _op_ends_with,
    "is_empty": _op_is_empty,
    "is_not_empty": _op_is_not_empty,
    "greater_than": _op_greater_than,
    "less_than": _op_less_than,
}


def evaluate_filter(record: dict[str, Any], filt: dict[str, Any]) -> bool:
    """
    Evaluate one filter against one record.
    Unknown operators pass (the record is kept).
    """
    op = _OPERATORS.get(filt.get("operator"))
    if op is None:
        return True
    value = _value_of(record, filt.get("property_id"))
    return op(value, filt.get("value", MISSING))


def matches(record: dict[str, Any], filters: list[dict[str, Any]] | None) -> bool:
    """True iff every filter passes. An empty filter list matches everything."""
    return all(evaluate_filter(record, f) for f in filters or [])


def apply_filters(records: list[dict[str, Any]], filters: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    if not filters:
        return list(records)
    return [r for r in records if matches(r, filters)]


# ---------------------------------------------------------------------------
# Sort comparator
# ---------------------------------------------------------------------------


def compare_records(a: dict[str, Any], b: dict[str, Any], sorts: list[dict[str, Any]] | None) -> int:
    """
    Compare two records by successive sort keys.
    Returns -1, 0 or 1. The first non-zero key decides.
    """
    for sort in sorts or []:
        pid = sort.get("property_id")
        result = compare_values(_value_of(a, pid), _value_of(b, pid))
        if result != 0:
            return -result if sort.get("direction") == "desc" else result
    return 0


def sort_records(records: list[dict[str, Any]], sorts: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """Stable sort. Records that tie on every key keep their input order."""
    if not sorts:
        return list(records)
    return sorted(records, key=cmp_to_key(lambda a, b: compare_records(a, b, sorts)))


# ---------------------------------------------------------------------------
# Search matcher
# ---------------------------------------------------------------------------


def search(record: dict[str, Any], query: str | None) -> bool:
    """Case-insensitive substring match against every property value."""
    if not query:
        return True
    needle = query.lower()
    props = record.get("properties") or {}
    return any(needle in to_js_string(v).lower() for v in props.values())


def apply_search(records: list[dict[str, Any]], query: str | None) -> list[dict[str, Any]]:
    if not query:
        return list(records)
    return [r for r in records if search(r, query)]


# ---------------------------------------------------------------------------
# View selector
# ---------------------------------------------------------------------------


def resolve_view_type(view: dict[str, Any] | None) -> str:
    """A view with no type renders as a table."""
    if not view:
        return DEFAULT_VIEW_TYPE
    return view.get("type") or DEFAULT_VIEW_TYPE


def apply_view(
    records: list[dict[str, Any]],
    view: dict[str, Any] | None,
    search_query: str | None = None,
) -> list[dict[str, Any]]:
    """
    Search, filter and sort a record list through a view.
    Returns a new list; the input is never reordered.
    """
    result = apply_search(records, search_query)
    if view is None:
        return result
    result = apply_filters(result, view.get("filters"))
    return sort_records(result, view.get("sorts"))


def schema_order(properties: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Properties by their `order` stamp; ties keep list order."""
    return sorted(properties, key=lambda p: p.get("order", 0))


def get_visible_properties(
    properties: list[dict[str, Any]],
    view: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """
    Properties a view shows, in schema order.

    A view with a non-empty `visible_properties` list shows exactly those
    ids. Otherwise every property whose global `is_visible` flag is set.
    """
    ordered = schema_order(properties)
    wanted = (view or {}).get("visible_properties")
    if wanted:
        ids = set(wanted)
        return [p for p in ordered if p.get("id") in ids]
    return [p for p in ordered if p.get("is_visible", True) is not False]


def find_property(properties: list[dict[str, Any]], property_id: str | None) -> dict[str, Any] | None:
    if property_id is None:
        return None
    for prop in properties:
        if prop.get("id") == property_id:
            return prop
    return None
