"""
Tabula Kernel — Event Payload Validation

Validates event payloads before they reach the reducer.
Validation is structural (well-formed?) not semantic (will it apply?).
The reducer handles semantic checks (does the record exist? is the
database frozen? etc.).
"""

from __future__ import annotations

from typing import Any

from tabula.kernel.types import EVENT_TYPES, SORT_DIRECTIONS

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_primitive(type: str, payload: dict[str, Any]) -> list[str]:
    """
    Validate an event's type and payload structure.
    Returns a list of error strings. Empty list = valid.

    This checks structural validity only:
    - Is the type recognized?
    - Is the payload a dict?
    - Are required keys present, with the right shapes?

    It does NOT check whether referenced records, properties or views
    exist. That's the reducer's job.
    """
    errors: list[str] = []

    if type not in EVENT_TYPES:
        errors.append(f"Unknown event type: {type}")
        return errors

    if not isinstance(payload, dict):
        errors.append("Payload must be a non-null object")
        return errors

    validator = _VALIDATORS.get(type)
    if validator:
        errors.extend(validator(payload))

    return errors


# ---------------------------------------------------------------------------
# Shared checks
# ---------------------------------------------------------------------------


def _require_id(p: dict, type: str, key: str = "id") -> list[str]:
    if key not in p:
        return [f"{type} requires '{key}'"]
    if not isinstance(p[key], str) or not p[key]:
        return [f"'{key}' must be a non-empty string"]
    return []


def _optional_id(p: dict, key: str) -> list[str]:
    if p.get(key) is not None and (not isinstance(p[key], str) or not p[key]):
        return [f"'{key}' must be a non-empty string"]
    return []


def _require_id_list(p: dict, type: str, key: str = "ids") -> list[str]:
    if key not in p:
        return [f"{type} requires '{key}'"]
    ids = p[key]
    if not isinstance(ids, list):
        return [f"'{key}' must be a list"]
    return [f"Invalid id in '{key}': {i!r}" for i in ids if not isinstance(i, str) or not i]


def _require_updates(p: dict, type: str) -> list[str]:
    if "updates" not in p:
        return [f"{type} requires 'updates'"]
    if not isinstance(p["updates"], dict):
        return ["'updates' must be an object"]
    return []


def _check_filter(f: Any, where: str) -> list[str]:
    if not isinstance(f, dict):
        return [f"{where}: filter must be an object"]
    errors: list[str] = []
    if not isinstance(f.get("property_id"), str):
        errors.append(f"{where}: filter requires 'property_id'")
    if not isinstance(f.get("operator"), str):
        errors.append(f"{where}: filter requires 'operator'")
    # Unknown operators are tolerated downstream (they match everything)
    return errors


def _check_sort(s: Any, where: str) -> list[str]:
    if not isinstance(s, dict):
        return [f"{where}: sort must be an object"]
    errors: list[str] = []
    if not isinstance(s.get("property_id"), str):
        errors.append(f"{where}: sort requires 'property_id'")
    if s.get("direction", "asc") not in SORT_DIRECTIONS:
        errors.append(f"{where}: sort direction must be one of {sorted(SORT_DIRECTIONS)}")
    return errors


def _check_filter_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list):
        return [f"'{key}' must be a list"]
    errors: list[str] = []
    for i, f in enumerate(value):
        errors.extend(_check_filter(f, f"{key}[{i}]"))
    return errors


def _check_sort_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list):
        return [f"'{key}' must be a list"]
    errors: list[str] = []
    for i, s in enumerate(value):
        errors.extend(_check_sort(s, f"{key}[{i}]"))
    return errors


def _check_optional_str(p: dict, key: str, prefix: str = "") -> list[str]:
    if p.get(key) is not None and not isinstance(p[key], str):
        return [f"'{prefix}{key}' must be a string"]
    return []


def _check_positive_int(p: dict, type: str, key: str) -> list[str]:
    if key not in p:
        return [f"{type} requires '{key}'"]
    v = p[key]
    if not isinstance(v, int) or isinstance(v, bool) or v < 1:
        return [f"'{key}' must be a positive integer"]
    return []


# ---------------------------------------------------------------------------
# Per-event validators: records
# ---------------------------------------------------------------------------


def _validate_record_add(p: dict) -> list[str]:
    errors = _optional_id(p, "id")
    if "properties" in p and not isinstance(p["properties"], dict):
        errors.append("'properties' must be an object")
    return errors


def _validate_record_update(p: dict) -> list[str]:
    errors = _require_id(p, "record.update") + _require_updates(p, "record.update")
    if not errors and "properties" in p["updates"] and not isinstance(p["updates"]["properties"], dict):
        errors.append("'updates.properties' must be an object")
    if not errors:
        for key in ("created_by", "last_edited_by"):
            errors.extend(_check_optional_str(p["updates"], key, "updates."))
    return errors


def _validate_record_delete(p: dict) -> list[str]:
    return _require_id(p, "record.delete")


def _validate_record_delete_many(p: dict) -> list[str]:
    return _require_id_list(p, "record.delete_many")


def _validate_record_duplicate(p: dict) -> list[str]:
    return _require_id(p, "record.duplicate") + _optional_id(p, "new_id")


# ---------------------------------------------------------------------------
# Per-event validators: properties
# ---------------------------------------------------------------------------


def _check_select_options(value: Any) -> list[str]:
    if not isinstance(value, list):
        return ["'select_options' must be a list"]
    errors: list[str] = []
    for i, opt in enumerate(value):
        if isinstance(opt, str):
            continue
        if not isinstance(opt, dict) or not isinstance(opt.get("name"), str):
            errors.append(f"select_options[{i}] must be a string or an object with 'name'")
    return errors


def _validate_property_add(p: dict) -> list[str]:
    errors = _optional_id(p, "id")
    if not isinstance(p.get("name"), str) or not p["name"].strip():
        errors.append("property.add requires a non-empty 'name'")
    if not isinstance(p.get("type"), str) or not p["type"]:
        errors.append("property.add requires 'type'")
    errors.extend(_check_optional_str(p, "description"))
    for key in ("required", "is_visible"):
        if key in p and not isinstance(p[key], bool):
            errors.append(f"'{key}' must be a boolean")
    if "width" in p and (not isinstance(p["width"], int) or isinstance(p["width"], bool)):
        errors.append("'width' must be an integer")
    if p.get("select_options") is not None:
        errors.extend(_check_select_options(p["select_options"]))
    return errors


def _validate_property_update(p: dict) -> list[str]:
    errors = _require_id(p, "property.update") + _require_updates(p, "property.update")
    if errors:
        return errors
    updates = p["updates"]
    if "name" in updates and (not isinstance(updates["name"], str) or not updates["name"].strip()):
        errors.append("'updates.name' must be a non-empty string")
    if "type" in updates and (not isinstance(updates["type"], str) or not updates["type"]):
        errors.append("'updates.type' must be a non-empty string")
    for key in ("required", "is_visible"):
        if key in updates and not isinstance(updates[key], bool):
            errors.append(f"'updates.{key}' must be a boolean")
    if "width" in updates and (not isinstance(updates["width"], int) or isinstance(updates["width"], bool)):
        errors.append("'updates.width' must be an integer")
    errors.extend(_check_optional_str(updates, "description", "updates."))
    if updates.get("select_options") is not None:
        errors.extend(_check_select_options(updates["select_options"]))
    return errors


def _validate_property_delete(p: dict) -> list[str]:
    return _require_id(p, "property.delete")


def _validate_property_reorder(p: dict) -> list[str]:
    return _require_id_list(p, "property.reorder")


def _validate_property_set_visibility(p: dict) -> list[str]:
    errors = _require_id(p, "property.set_visibility")
    if not isinstance(p.get("is_visible"), bool):
        errors.append("property.set_visibility requires boolean 'is_visible'")
    return errors


# ---------------------------------------------------------------------------
# Per-event validators: views
# ---------------------------------------------------------------------------


def _check_view_fields(p: dict, prefix: str = "") -> list[str]:
    errors = _check_optional_str(p, "group_by", prefix)
    if "filters" in p:
        errors.extend(_check_filter_list(p["filters"], f"{prefix}filters"))
    if "sorts" in p:
        errors.extend(_check_sort_list(p["sorts"], f"{prefix}sorts"))
    vp = p.get("visible_properties")
    if vp is not None and (not isinstance(vp, list) or not all(isinstance(i, str) for i in vp)):
        errors.append(f"'{prefix}visible_properties' must be a list of ids")
    if "is_default" in p and not isinstance(p["is_default"], bool):
        errors.append(f"'{prefix}is_default' must be a boolean")
    bs = p.get("board_settings")
    if bs is not None and not isinstance(bs, dict):
        errors.append(f"'{prefix}board_settings' must be an object")
    elif bs is not None and not isinstance(bs.get("show_ungrouped", True), bool):
        errors.append(f"'{prefix}board_settings.show_ungrouped' must be a boolean")
    return errors


def _validate_view_add(p: dict) -> list[str]:
    errors = _optional_id(p, "id")
    if not isinstance(p.get("name"), str) or not p["name"].strip():
        errors.append("view.add requires a non-empty 'name'")
    if "type" in p and p["type"] is not None and not isinstance(p["type"], str):
        errors.append("'type' must be a string")
    errors.extend(_check_view_fields(p))
    return errors


def _validate_view_update(p: dict) -> list[str]:
    errors = _require_id(p, "view.update") + _require_updates(p, "view.update")
    if errors:
        return errors
    updates = p["updates"]
    if "name" in updates and (not isinstance(updates["name"], str) or not updates["name"].strip()):
        errors.append("'updates.name' must be a non-empty string")
    errors.extend(_check_optional_str(updates, "type", "updates."))
    errors.extend(_check_view_fields(updates, prefix="updates."))
    return errors


def _validate_view_delete(p: dict) -> list[str]:
    return _require_id(p, "view.delete")


def _validate_view_set_current(p: dict) -> list[str]:
    # id None deactivates every view
    if "id" not in p:
        return ["view.set_current requires 'id'"]
    return _optional_id(p, "id")


def _validate_view_duplicate(p: dict) -> list[str]:
    return _require_id(p, "view.duplicate") + _optional_id(p, "new_id")


# ---------------------------------------------------------------------------
# Per-event validators: selection and working query state
# ---------------------------------------------------------------------------


def _validate_selection_set(p: dict) -> list[str]:
    return _require_id_list(p, "selection.set")


def _validate_selection_toggle(p: dict) -> list[str]:
    return _require_id(p, "selection.toggle")


def _validate_query_search(p: dict) -> list[str]:
    if not isinstance(p.get("query"), str):
        return ["query.search requires string 'query'"]
    return []


def _validate_query_set_filters(p: dict) -> list[str]:
    if "filters" not in p:
        return ["query.set_filters requires 'filters'"]
    return _check_filter_list(p["filters"], "filters")


def _validate_query_add_filter(p: dict) -> list[str]:
    if "filter" not in p:
        return ["query.add_filter requires 'filter'"]
    return _check_filter(p["filter"], "filter")


def _validate_query_remove_filter(p: dict) -> list[str]:
    index = p.get("index")
    if not isinstance(index, int) or isinstance(index, bool):
        return ["query.remove_filter requires integer 'index'"]
    return []


def _validate_query_set_sorts(p: dict) -> list[str]:
    if "sorts" not in p:
        return ["query.set_sorts requires 'sorts'"]
    return _check_sort_list(p["sorts"], "sorts")


def _validate_query_add_sort(p: dict) -> list[str]:
    if "sort" not in p:
        return ["query.add_sort requires 'sort'"]
    return _check_sort(p["sort"], "sort")


def _validate_query_remove_sort(p: dict) -> list[str]:
    return _require_id(p, "query.remove_sort", key="property_id")


def _validate_query_group_by(p: dict) -> list[str]:
    if "property_id" not in p:
        return ["query.group_by requires 'property_id'"]
    return _optional_id(p, "property_id")


def _validate_page_set(p: dict) -> list[str]:
    return _check_positive_int(p, "page.set", "page")


def _validate_page_set_size(p: dict) -> list[str]:
    return _check_positive_int(p, "page.set_size", "size")


# ---------------------------------------------------------------------------
# Per-event validators: database
# ---------------------------------------------------------------------------


def _validate_database_update(p: dict) -> list[str]:
    errors: list[str] = []
    keys = [k for k in ("name", "icon", "description") if k in p]
    if not keys:
        errors.append("database.update requires at least one of 'name', 'icon', 'description'")
    if "name" in p and (not isinstance(p["name"], str) or not p["name"].strip()):
        errors.append("'name' must be a non-empty string")
    for key in ("icon", "description"):
        if key in p and p[key] is not None and not isinstance(p[key], str):
            errors.append(f"'{key}' must be a string")
    return errors


def _validate_database_share(p: dict) -> list[str]:
    errors: list[str] = []
    if not isinstance(p.get("is_shared"), bool):
        errors.append("database.share requires boolean 'is_shared'")
    perms = p.get("permissions")
    if perms is not None:
        if not isinstance(perms, dict):
            errors.append("'permissions' must be an object")
        else:
            errors.extend(f"Permission '{k}' must be a boolean" for k, v in perms.items() if not isinstance(v, bool))
    return errors


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

_VALIDATORS: dict[str, Any] = {
    "record.add": _validate_record_add,
    "record.update": _validate_record_update,
    "record.delete": _validate_record_delete,
    "record.delete_many": _validate_record_delete_many,
    "record.duplicate": _validate_record_duplicate,
    "property.add": _validate_property_add,
    "property.update": _validate_property_update,
    "property.delete": _validate_property_delete,
    "property.reorder": _validate_property_reorder,
    "property.set_visibility": _validate_property_set_visibility,
    "view.add": _validate_view_add,
    "view.update": _validate_view_update,
    "view.delete": _validate_view_delete,
    "view.set_current": _validate_view_set_current,
    "view.duplicate": _validate_view_duplicate,
    "selection.set": _validate_selection_set,
    "selection.toggle": _validate_selection_toggle,
    "query.search": _validate_query_search,
    "query.set_filters": _validate_query_set_filters,
    "query.add_filter": _validate_query_add_filter,
    "query.remove_filter": _validate_query_remove_filter,
    "query.set_sorts": _validate_query_set_sorts,
    "query.add_sort": _validate_query_add_sort,
    "query.remove_sort": _validate_query_remove_sort,
    "query.group_by": _validate_query_group_by,
    "page.set": _validate_page_set,
    "page.set_size": _validate_page_set_size,
    "database.update": _validate_database_update,
    "database.share": _validate_database_share,
}

# Payload-free events: selection.all, selection.clear, query.clear_filters,
# query.clear_sorts, database.freeze, database.unfreeze.
