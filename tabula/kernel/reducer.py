"""
Tabula Kernel — Reducer

Pure function: (state, event) → ReduceResult
No side effects. No IO. Deterministic.

Given the same sequence of events, produces the same state every time.
Ids and timestamps travel inside the event; the reducer never mints them
from the clock.
"""

from __future__ import annotations

import copy
from typing import Any

from tabula.config import settings
from tabula.kernel.query import apply_filters, apply_search
from tabula.kernel.types import (
    DEFAULT_PERMISSIONS,
    DEFAULT_VIEW_TYPE,
    FROZEN_EVENT_PREFIXES,
    OPTION_COLORS,
    PROPERTY_TYPES,
    SELECT_TYPES,
    VIEW_TYPES,
    Event,
    ReduceResult,
    Warning,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def empty_state(database_id: str | None = None, name: str | None = None) -> dict[str, Any]:
    """
    The initial state of a database with no events.
    No properties, records or views; working query state is blank.
    """
    return {
        "version": settings.SNAPSHOT_VERSION,
        "database": {
            "id": database_id,
            "name": name or settings.DATABASE_NAME,
            "icon": settings.DATABASE_ICON,
            "description": "",
            "is_frozen": False,
            "is_shared": False,
            "permissions": dict(DEFAULT_PERMISSIONS),
        },
        "properties": [],
        "records": [],
        "views": [],
        "current_view_id": None,
        "selected_records": [],
        "search_query": "",
        "current_filters": [],
        "current_sorts": [],
        "group_by": None,
        "current_page": 1,
        "page_size": settings.PAGE_SIZE,
    }


def reduce(state: dict[str, Any], event: Event) -> ReduceResult:
    """
    Apply one event to the current state.
    Returns new state + applied flag + warnings/errors.

    Pure function. The returned state is a new dict (deep copy on mutation
    paths). The input state is never modified.
    """
    handler = _HANDLERS.get(event.type)
    if handler is None:
        return ReduceResult(state=state, applied=False, error=f"UNKNOWN_EVENT: {event.type}")

    if event.type.startswith(FROZEN_EVENT_PREFIXES) and state.get("database", {}).get("is_frozen"):
        return ReduceResult(
            state=state,
            applied=False,
            error=f"DATABASE_FROZEN: {event.type} is not allowed while the database is frozen",
        )

    # Deep copy so we never mutate the input
    snap = copy.deepcopy(state)
    return handler(snap, event)


def replay(events: list[Event], initial: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Rebuild state from scratch by reducing over all events.
    replay(events) == reduce(reduce(reduce(empty(), e1), e2), e3)...
    """
    state = initial if initial is not None else empty_state()
    for event in events:
        result = reduce(state, event)
        if result.applied:
            state = result.state
    return state


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(snap: dict, code: str, msg: str) -> ReduceResult:
    return ReduceResult(state=snap, applied=False, error=f"{code}: {msg}")


def _ok(snap: dict, warnings: list[Warning] | None = None) -> ReduceResult:
    return ReduceResult(state=snap, applied=True, warnings=warnings or [])


def _find(items: list[dict], item_id: Any) -> tuple[int, dict | None]:
    """Index and item with the given id, or (-1, None)."""
    for i, item in enumerate(items):
        if item.get("id") == item_id:
            return i, item
    return -1, None


def _touch(record: dict, event: Event) -> None:
    record["updated_at"] = event.timestamp
    record["last_edited_by"] = event.actor


def _default_value(prop: dict, event: Event) -> Any:
    """Value given to a required property the creator didn't supply."""
    ptype = prop.get("type")
    if ptype in ("TEXT", "TITLE"):
        return "Untitled"
    if ptype == "NUMBER":
        return 0
    if ptype == "CHECKBOX":
        return False
    if ptype == "DATE":
        return event.timestamp
    return ""


def _normalize_options(options: list[Any], prop_id: str) -> list[dict[str, Any]]:
    """
    Select options as {id, name, color}. Bare strings become named options;
    missing ids and colors are filled deterministically.
    """
    result: list[dict[str, Any]] = []
    seen: set[str] = set()
    for i, opt in enumerate(options):
        if isinstance(opt, str):
            opt = {"name": opt}
        option_id = opt.get("id") or f"{prop_id}_opt_{i + 1}"
        n = i + 1
        while option_id in seen:
            n += 1
            option_id = f"{prop_id}_opt_{n}"
        seen.add(option_id)
        result.append(
            {
                "id": option_id,
                "name": opt.get("name", option_id),
                "color": opt.get("color") or OPTION_COLORS[i % len(OPTION_COLORS)],
            }
        )
    return result


def _restamp_order(snap: dict) -> None:
    for i, prop in enumerate(snap["properties"]):
        prop["order"] = i


def hydrate_working_query(snap: dict, view: dict | None) -> None:
    """Copy a view's saved query into the working query state."""
    if view is None:
        snap["current_filters"] = []
        snap["current_sorts"] = []
        snap["group_by"] = None
    else:
        snap["current_filters"] = copy.deepcopy(view.get("filters") or [])
        snap["current_sorts"] = copy.deepcopy(view.get("sorts") or [])
        snap["group_by"] = view.get("group_by")
    snap["current_page"] = 1


def _clear_other_defaults(snap: dict, view_id: str) -> None:
    for view in snap["views"]:
        if view["id"] != view_id:
            view["is_default"] = False


def _missing_property_warnings(snap: dict, view_id: str, fields: dict) -> list[Warning]:
    known = {p["id"] for p in snap["properties"]}
    referenced: list[str] = list(fields.get("visible_properties") or [])
    referenced += [f.get("property_id") for f in fields.get("filters") or []]
    referenced += [s.get("property_id") for s in fields.get("sorts") or []]
    if fields.get("group_by") is not None:
        referenced.append(fields["group_by"])

    warnings: list[Warning] = []
    for pid in dict.fromkeys(referenced):
        if pid not in known:
            warnings.append(
                Warning(
                    code="VIEW_PROPERTY_MISSING",
                    message=f"View '{view_id}' references property '{pid}' not in schema",
                )
            )
    return warnings


def _drop_property_refs(container: dict, prop_id: str, filters_key: str, sorts_key: str, group_key: str) -> bool:
    """Remove a property from filter/sort/group references. True if anything changed."""
    changed = False
    filters = container.get(filters_key) or []
    kept = [f for f in filters if f.get("property_id") != prop_id]
    if len(kept) != len(filters):
        container[filters_key] = kept
        changed = True
    sorts = container.get(sorts_key) or []
    kept = [s for s in sorts if s.get("property_id") != prop_id]
    if len(kept) != len(sorts):
        container[sorts_key] = kept
        changed = True
    if container.get(group_key) == prop_id:
        container[group_key] = None
        changed = True
    return changed


# ---------------------------------------------------------------------------
# Record handlers
# ---------------------------------------------------------------------------


def _handle_record_add(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    record_id = p.get("id") or f"rec_{event.sequence}"

    _, existing = _find(snap["records"], record_id)
    if existing is not None:
        return _reject(snap, "RECORD_ALREADY_EXISTS", record_id)

    values = dict(p.get("properties") or {})
    for prop in snap["properties"]:
        if prop.get("required") and prop["id"] not in values:
            values[prop["id"]] = _default_value(prop, event)

    snap["records"].append(
        {
            "id": record_id,
            "properties": values,
            "created_at": event.timestamp,
            "updated_at": event.timestamp,
            "created_by": event.actor,
            "last_edited_by": event.actor,
        }
    )
    return _ok(snap)


def _handle_record_update(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    record_id = p["id"]
    warnings: list[Warning] = []

    _, record = _find(snap["records"], record_id)
    if record is None:
        return _reject(snap, "RECORD_NOT_FOUND", record_id)

    for key, value in p.get("updates", {}).items():
        if key == "properties":
            record.setdefault("properties", {}).update(value)
        elif key in ("id", "created_at"):
            warnings.append(Warning(code="IMMUTABLE_FIELD_IGNORED", message=f"Record field '{key}' cannot be changed"))
        else:
            record[key] = value

    _touch(record, event)
    return _ok(snap, warnings)


def _remove_records(snap: dict, ids: set[str]) -> None:
    snap["records"] = [r for r in snap["records"] if r.get("id") not in ids]
    snap["selected_records"] = [rid for rid in snap["selected_records"] if rid not in ids]


def _handle_record_delete(snap: dict, event: Event) -> ReduceResult:
    record_id = event.payload["id"]

    _, record = _find(snap["records"], record_id)
    if record is None:
        return _reject(snap, "RECORD_NOT_FOUND", record_id)

    _remove_records(snap, {record_id})
    return _ok(snap)


def _handle_record_delete_many(snap: dict, event: Event) -> ReduceResult:
    ids = event.payload["ids"]
    warnings: list[Warning] = []

    existing = {r["id"] for r in snap["records"]}
    found = {rid for rid in ids if rid in existing}
    for rid in dict.fromkeys(ids):
        if rid not in existing:
            warnings.append(Warning(code="RECORD_NOT_FOUND", message=f"Record '{rid}' not found, skipped"))

    if ids and not found:
        return _reject(snap, "RECORD_NOT_FOUND", ", ".join(ids))

    _remove_records(snap, found)
    return _ok(snap, warnings)


def _handle_record_duplicate(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    source_id = p["id"]
    new_id = p.get("new_id") or f"{source_id}_copy_{event.sequence}"

    _, source = _find(snap["records"], source_id)
    if source is None:
        return _reject(snap, "RECORD_NOT_FOUND", source_id)
    _, clash = _find(snap["records"], new_id)
    if clash is not None:
        return _reject(snap, "RECORD_ALREADY_EXISTS", new_id)

    dup = copy.deepcopy(source)
    dup["id"] = new_id
    dup["created_at"] = event.timestamp
    dup["created_by"] = event.actor
    _touch(dup, event)
    snap["records"].append(dup)
    return _ok(snap)


# ---------------------------------------------------------------------------
# Property handlers
# ---------------------------------------------------------------------------


def _handle_property_add(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    prop_id = p.get("id") or f"prop_{event.sequence}"
    ptype = p["type"]
    warnings: list[Warning] = []

    _, existing = _find(snap["properties"], prop_id)
    if existing is not None:
        return _reject(snap, "PROPERTY_ALREADY_EXISTS", prop_id)

    if ptype not in PROPERTY_TYPES:
        warnings.append(Warning(code="UNKNOWN_PROPERTY_TYPE", message=f"Property type '{ptype}' is not recognized"))

    prop: dict[str, Any] = {
        "id": prop_id,
        "name": p["name"],
        "type": ptype,
        "required": p.get("required", False),
        "is_visible": p.get("is_visible", True),
        "order": len(snap["properties"]),
        "width": p.get("width", settings.PROPERTY_WIDTH),
    }
    if ptype in SELECT_TYPES:
        prop["select_options"] = _normalize_options(p.get("select_options") or [], prop_id)
    if p.get("description") is not None:
        prop["description"] = p["description"]

    snap["properties"].append(prop)
    return _ok(snap, warnings)


def _handle_property_update(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    prop_id = p["id"]
    warnings: list[Warning] = []

    _, prop = _find(snap["properties"], prop_id)
    if prop is None:
        return _reject(snap, "PROPERTY_NOT_FOUND", prop_id)

    for key, value in p.get("updates", {}).items():
        if key in ("id", "order"):
            warnings.append(Warning(code="IMMUTABLE_FIELD_IGNORED", message=f"Property field '{key}' cannot be updated"))
        elif key == "select_options":
            prop["select_options"] = _normalize_options(value or [], prop_id)
        elif key == "type":
            if value not in PROPERTY_TYPES:
                warnings.append(
                    Warning(code="UNKNOWN_PROPERTY_TYPE", message=f"Property type '{value}' is not recognized")
                )
            # Existing record values are left as they are
            prop["type"] = value
        else:
            prop[key] = value

    if prop["type"] in SELECT_TYPES:
        prop.setdefault("select_options", [])
    else:
        prop.pop("select_options", None)

    return _ok(snap, warnings)


def _handle_property_delete(snap: dict, event: Event) -> ReduceResult:
    prop_id = event.payload["id"]
    warnings: list[Warning] = []

    index, prop = _find(snap["properties"], prop_id)
    if prop is None:
        return _reject(snap, "PROPERTY_NOT_FOUND", prop_id)

    del snap["properties"][index]
    _restamp_order(snap)

    # Remove from all records
    for record in snap["records"]:
        record.get("properties", {}).pop(prop_id, None)

    # Purge from every view that references it
    for view in snap["views"]:
        changed = False
        visible = view.get("visible_properties")
        if visible and prop_id in visible:
            view["visible_properties"] = [pid for pid in visible if pid != prop_id]
            changed = True
        if _drop_property_refs(view, prop_id, "filters", "sorts", "group_by"):
            changed = True
        if changed:
            warnings.append(
                Warning(
                    code="VIEW_PROPERTY_MISSING",
                    message=f"View '{view['id']}' referenced removed property '{prop_id}'",
                )
            )

    # And from the working query state
    _drop_property_refs(snap, prop_id, "current_filters", "current_sorts", "group_by")

    return _ok(snap, warnings)


def _handle_property_reorder(snap: dict, event: Event) -> ReduceResult:
    new_order = event.payload["ids"]
    warnings: list[Warning] = []

    by_id = {prop["id"]: prop for prop in snap["properties"]}

    valid_order: list[str] = []
    for pid in new_order:
        if pid in by_id:
            if pid not in valid_order:
                valid_order.append(pid)
        else:
            warnings.append(Warning(code="UNKNOWN_PROPERTY_IGNORED", message=f"'{pid}' is not a property"))

    # Append any current properties not in the provided order
    for prop in snap["properties"]:
        if prop["id"] not in valid_order:
            valid_order.append(prop["id"])

    snap["properties"] = [by_id[pid] for pid in valid_order]
    _restamp_order(snap)
    return _ok(snap, warnings)


def _handle_property_set_visibility(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    _, prop = _find(snap["properties"], p["id"])
    if prop is None:
        return _reject(snap, "PROPERTY_NOT_FOUND", p["id"])
    prop["is_visible"] = p["is_visible"]
    return _ok(snap)


# ---------------------------------------------------------------------------
# View handlers
# ---------------------------------------------------------------------------

_VIEW_FIELDS = ("name", "type", "is_default", "filters", "sorts", "visible_properties", "group_by", "board_settings")


def _handle_view_add(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    view_id = p.get("id") or f"view_{event.sequence}"
    view_type = p.get("type") or DEFAULT_VIEW_TYPE
    warnings: list[Warning] = []

    _, existing = _find(snap["views"], view_id)
    if existing is not None:
        return _reject(snap, "VIEW_ALREADY_EXISTS", view_id)

    if view_type not in VIEW_TYPES:
        warnings.append(Warning(code="UNKNOWN_VIEW_TYPE", message=f"View type '{view_type}' is not recognized"))
    warnings.extend(_missing_property_warnings(snap, view_id, p))

    view: dict[str, Any] = {
        "id": view_id,
        "name": p["name"],
        "type": view_type,
        "is_default": p.get("is_default", False),
        "filters": copy.deepcopy(p.get("filters") or []),
        "sorts": copy.deepcopy(p.get("sorts") or []),
        "visible_properties": list(p["visible_properties"]) if p.get("visible_properties") is not None else None,
        "group_by": p.get("group_by"),
    }
    if p.get("board_settings") is not None:
        view["board_settings"] = dict(p["board_settings"])

    snap["views"].append(view)
    if view["is_default"]:
        _clear_other_defaults(snap, view_id)

    return _ok(snap, warnings)


def _handle_view_update(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    view_id = p["id"]
    updates = p.get("updates", {})
    warnings: list[Warning] = []

    _, view = _find(snap["views"], view_id)
    if view is None:
        return _reject(snap, "VIEW_NOT_FOUND", view_id)

    for key, value in updates.items():
        if key not in _VIEW_FIELDS:
            warnings.append(Warning(code="UNKNOWN_FIELD_IGNORED", message=f"View field '{key}' ignored"))
            continue
        view[key] = copy.deepcopy(value)

    if "type" in updates:
        view["type"] = updates["type"] or DEFAULT_VIEW_TYPE
        if view["type"] not in VIEW_TYPES:
            warnings.append(Warning(code="UNKNOWN_VIEW_TYPE", message=f"View type '{view['type']}' is not recognized"))
    warnings.extend(_missing_property_warnings(snap, view_id, updates))

    if updates.get("is_default"):
        _clear_other_defaults(snap, view_id)

    if snap["current_view_id"] == view_id and {"filters", "sorts", "group_by"} & updates.keys():
        hydrate_working_query(snap, view)

    return _ok(snap, warnings)


def _handle_view_delete(snap: dict, event: Event) -> ReduceResult:
    view_id = event.payload["id"]

    index, view = _find(snap["views"], view_id)
    if view is None:
        return _reject(snap, "VIEW_NOT_FOUND", view_id)

    del snap["views"][index]

    if snap["current_view_id"] == view_id:
        fallback = snap["views"][0] if snap["views"] else None
        snap["current_view_id"] = fallback["id"] if fallback else None
        hydrate_working_query(snap, fallback)

    return _ok(snap)


def _handle_view_set_current(snap: dict, event: Event) -> ReduceResult:
    view_id = event.payload.get("id")

    if view_id is None:
        snap["current_view_id"] = None
        hydrate_working_query(snap, None)
        return _ok(snap)

    _, view = _find(snap["views"], view_id)
    if view is None:
        return _reject(snap, "VIEW_NOT_FOUND", view_id)

    snap["current_view_id"] = view_id
    hydrate_working_query(snap, view)
    return _ok(snap)


def _handle_view_duplicate(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    source_id = p["id"]
    new_id = p.get("new_id") or f"{source_id}_copy_{event.sequence}"

    _, source = _find(snap["views"], source_id)
    if source is None:
        return _reject(snap, "VIEW_NOT_FOUND", source_id)
    _, clash = _find(snap["views"], new_id)
    if clash is not None:
        return _reject(snap, "VIEW_ALREADY_EXISTS", new_id)

    dup = copy.deepcopy(source)
    dup["id"] = new_id
    dup["name"] = f"{source.get('name', '')} (Copy)"
    dup["is_default"] = False
    snap["views"].append(dup)
    return _ok(snap)


# ---------------------------------------------------------------------------
# Selection handlers
# ---------------------------------------------------------------------------


def _handle_selection_set(snap: dict, event: Event) -> ReduceResult:
    snap["selected_records"] = list(dict.fromkeys(event.payload["ids"]))
    return _ok(snap)


def _handle_selection_all(snap: dict, event: Event) -> ReduceResult:
    visible = apply_filters(apply_search(snap["records"], snap["search_query"]), snap["current_filters"])
    snap["selected_records"] = [r["id"] for r in visible]
    return _ok(snap)


def _handle_selection_clear(snap: dict, event: Event) -> ReduceResult:
    snap["selected_records"] = []
    return _ok(snap)


def _handle_selection_toggle(snap: dict, event: Event) -> ReduceResult:
    record_id = event.payload["id"]
    selected = snap["selected_records"]
    if record_id in selected:
        selected.remove(record_id)
    else:
        selected.append(record_id)
    return _ok(snap)


# ---------------------------------------------------------------------------
# Working query state handlers
# ---------------------------------------------------------------------------


def _handle_query_search(snap: dict, event: Event) -> ReduceResult:
    snap["search_query"] = event.payload["query"]
    snap["current_page"] = 1
    return _ok(snap)


def _handle_query_set_filters(snap: dict, event: Event) -> ReduceResult:
    snap["current_filters"] = copy.deepcopy(event.payload["filters"])
    snap["current_page"] = 1
    return _ok(snap)


def _handle_query_add_filter(snap: dict, event: Event) -> ReduceResult:
    snap["current_filters"].append(copy.deepcopy(event.payload["filter"]))
    snap["current_page"] = 1
    return _ok(snap)


def _handle_query_remove_filter(snap: dict, event: Event) -> ReduceResult:
    index = event.payload["index"]
    if not 0 <= index < len(snap["current_filters"]):
        return _reject(snap, "FILTER_NOT_FOUND", f"No filter at index {index}")
    del snap["current_filters"][index]
    snap["current_page"] = 1
    return _ok(snap)


def _handle_query_clear_filters(snap: dict, event: Event) -> ReduceResult:
    snap["current_filters"] = []
    snap["current_page"] = 1
    return _ok(snap)


def _handle_query_set_sorts(snap: dict, event: Event) -> ReduceResult:
    snap["current_sorts"] = copy.deepcopy(event.payload["sorts"])
    return _ok(snap)


def _handle_query_add_sort(snap: dict, event: Event) -> ReduceResult:
    sort = dict(event.payload["sort"])
    sort.setdefault("direction", "asc")
    # One sort per property; the new one becomes the last tie-break
    snap["current_sorts"] = [s for s in snap["current_sorts"] if s.get("property_id") != sort["property_id"]]
    snap["current_sorts"].append(sort)
    return _ok(snap)


def _handle_query_remove_sort(snap: dict, event: Event) -> ReduceResult:
    prop_id = event.payload["property_id"]
    kept = [s for s in snap["current_sorts"] if s.get("property_id") != prop_id]
    if len(kept) == len(snap["current_sorts"]):
        return _reject(snap, "SORT_NOT_FOUND", prop_id)
    snap["current_sorts"] = kept
    return _ok(snap)


def _handle_query_clear_sorts(snap: dict, event: Event) -> ReduceResult:
    snap["current_sorts"] = []
    return _ok(snap)


def _handle_query_group_by(snap: dict, event: Event) -> ReduceResult:
    snap["group_by"] = event.payload.get("property_id")
    return _ok(snap)


def _handle_page_set(snap: dict, event: Event) -> ReduceResult:
    snap["current_page"] = event.payload["page"]
    return _ok(snap)


def _handle_page_set_size(snap: dict, event: Event) -> ReduceResult:
    snap["page_size"] = event.payload["size"]
    snap["current_page"] = 1
    return _ok(snap)


# ---------------------------------------------------------------------------
# Database handlers
# ---------------------------------------------------------------------------


def _handle_database_update(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    for key in ("name", "icon", "description"):
        if key in p:
            snap["database"][key] = p[key]
    return _ok(snap)


def _handle_database_freeze(snap: dict, event: Event) -> ReduceResult:
    if snap["database"].get("is_frozen"):
        return _ok(snap, [Warning(code="ALREADY_FROZEN", message="Database is already frozen")])
    snap["database"]["is_frozen"] = True
    return _ok(snap)


def _handle_database_unfreeze(snap: dict, event: Event) -> ReduceResult:
    if not snap["database"].get("is_frozen"):
        return _ok(snap, [Warning(code="NOT_FROZEN", message="Database is not frozen")])
    snap["database"]["is_frozen"] = False
    return _ok(snap)


def _handle_database_share(snap: dict, event: Event) -> ReduceResult:
    p = event.payload
    snap["database"]["is_shared"] = p["is_shared"]
    if p.get("permissions"):
        snap["database"].setdefault("permissions", dict(DEFAULT_PERMISSIONS)).update(p["permissions"])
    return _ok(snap)


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

_HANDLERS: dict[str, Any] = {
    "record.add": _handle_record_add,
    "record.update": _handle_record_update,
    "record.delete": _handle_record_delete,
    "record.delete_many": _handle_record_delete_many,
    "record.duplicate": _handle_record_duplicate,
    "property.add": _handle_property_add,
    "property.update": _handle_property_update,
    "property.delete": _handle_property_delete,
    "property.reorder": _handle_property_reorder,
    "property.set_visibility": _handle_property_set_visibility,
    "view.add": _handle_view_add,
    "view.update": _handle_view_update,
    "view.delete": _handle_view_delete,
    "view.set_current": _handle_view_set_current,
    "view.duplicate": _handle_view_duplicate,
    "selection.set": _handle_selection_set,
    "selection.all": _handle_selection_all,
    "selection.clear": _handle_selection_clear,
    "selection.toggle": _handle_selection_toggle,
    "query.search": _handle_query_search,
    "query.set_filters": _handle_query_set_filters,
    "query.add_filter": _handle_query_add_filter,
    "query.remove_filter": _handle_query_remove_filter,
    "query.clear_filters": _handle_query_clear_filters,
    "query.set_sorts": _handle_query_set_sorts,
    "query.add_sort": _handle_query_add_sort,
    "query.remove_sort": _handle_query_remove_sort,
    "query.clear_sorts": _handle_query_clear_sorts,
    "query.group_by": _handle_query_group_by,
    "page.set": _handle_page_set,
    "page.set_size": _handle_page_set_size,
    "database.update": _handle_database_update,
    "database.freeze": _handle_database_freeze,
    "database.unfreeze": _handle_database_unfreeze,
    "database.share": _handle_database_share,
}
