"""
Tabula Kernel — Database Store

Sits between the pure functions (reducer, query, projection) and the
outside world (UI code, persistence hooks). Holds the current state and
the event log, turns method calls into events, and notifies listeners.

The store is an explicit object handed to its consumers. There is no
module-level instance.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import date
from typing import Any

from tabula.config import settings
from tabula.kernel.events import make_event
from tabula.kernel.primitives import validate_primitive
from tabula.kernel.projection import project
from tabula.kernel.query import apply_filters, apply_search, find_property, get_visible_properties, sort_records
from tabula.kernel.reducer import empty_state, reduce, replay
from tabula.kernel.types import Event, Projection, ReduceResult, generate_id, now_iso
from tabula.kernel.values import parse_date

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], None]


class DatabaseStore:
    """
    One database: schema, records, views and working query state.

    Every mutator returns the ReduceResult of its event. Rejected events
    leave the state untouched and are not logged.
    """

    def __init__(
        self,
        state: dict[str, Any] | None = None,
        *,
        actor: str | None = None,
        clock: Callable[[], str] = now_iso,
        id_factory: Callable[[], str] = generate_id,
        on_change: Listener | None = None,
    ):
        self._clock = clock
        self._new_id = id_factory
        self._actor = actor or settings.DEFAULT_ACTOR
        self._state = state if state is not None else empty_state(database_id=id_factory())
        self._initial = self._state
        self._events: list[Event] = []
        self._sequence = 0
        self._listeners: list[Listener] = [on_change] if on_change else []

    # -- dispatch --

    def apply(self, type: str, payload: dict[str, Any] | None = None) -> ReduceResult:
        """
        Validate → reduce → notify.
        Entry point for externally supplied events; every mutator uses it too.
        """
        payload = payload if payload is not None else {}
        errors = validate_primitive(type, payload)
        if errors:
            logger.debug("Rejected %s: %s", type, errors)
            return ReduceResult(state=self._state, applied=False, error=f"VALIDATION_ERROR: {'; '.join(errors)}")

        seq = self._sequence + 1
        event = make_event(
            seq,
            type,
            payload,
            actor=self._actor,
            timestamp=self._clock(),
            event_id=self._new_id(),
        )
        result = reduce(self._state, event)
        if not result.applied:
            logger.debug("Rejected %s: %s", type, result.error)
            return result

        for warning in result.warnings:
            if warning.code.startswith("UNKNOWN_"):
                logger.info("%s: %s", warning.code, warning.message)

        self._sequence = seq
        self._state = result.state
        self._events.append(event)
        self._notify()
        return result

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register an on_change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                # The mutation stands; a broken listener only loses its notification
                logger.exception("on_change listener %r failed", listener)

    # -- records --

    def add_record(self, properties: dict[str, Any] | None = None, *, record_id: str | None = None) -> ReduceResult:
        return self.apply("record.add", {"id": record_id or self._new_id(), "properties": dict(properties or {})})

    def update_record(self, record_id: str, updates: dict[str, Any]) -> ReduceResult:
        return self.apply("record.update", {"id": record_id, "updates": updates})

    def set_record_value(self, record_id: str, property_id: str, value: Any) -> ReduceResult:
        return self.update_record(record_id, {"properties": {property_id: value}})

    def delete_record(self, record_id: str) -> ReduceResult:
        return self.apply("record.delete", {"id": record_id})

    def delete_records(self, record_ids: list[str]) -> ReduceResult:
        return self.apply("record.delete_many", {"ids": list(record_ids)})

    def delete_selected_records(self) -> ReduceResult:
        return self.delete_records(self.selected_records)

    def duplicate_record(self, record_id: str) -> ReduceResult:
        return self.apply("record.duplicate", {"id": record_id, "new_id": self._new_id()})

    # -- properties --

    def _with_option_ids(self, options: list[Any]) -> list[Any]:
        result = []
        for opt in options:
            if isinstance(opt, str):
                opt = {"name": opt}
            elif isinstance(opt, dict):
                opt = dict(opt)
            if isinstance(opt, dict) and not opt.get("id"):
                opt["id"] = self._new_id()
            result.append(opt)
        return result

    def add_property(
        self,
        name: str,
        type: str,
        *,
        property_id: str | None = None,
        required: bool = False,
        is_visible: bool = True,
        width: int | None = None,
        select_options: list[Any] | None = None,
        description: str | None = None,
    ) -> ReduceResult:
        payload: dict[str, Any] = {
            "id": property_id or self._new_id(),
            "name": name,
            "type": type,
            "required": required,
            "is_visible": is_visible,
            "width": width if width is not None else settings.PROPERTY_WIDTH,
        }
        if select_options is not None:
            payload["select_options"] = self._with_option_ids(select_options)
        if description is not None:
            payload["description"] = description
        return self.apply("property.add", payload)

    def update_property(self, property_id: str, updates: dict[str, Any]) -> ReduceResult:
        updates = dict(updates)
        if isinstance(updates.get("select_options"), list):
            updates["select_options"] = self._with_option_ids(updates["select_options"])
        return self.apply("property.update", {"id": property_id, "updates": updates})

    def delete_property(self, property_id: str) -> ReduceResult:
        return self.apply("property.delete", {"id": property_id})

    def reorder_properties(self, property_ids: list[str]) -> ReduceResult:
        return self.apply("property.reorder", {"ids": list(property_ids)})

    def set_property_visibility(self, property_id: str, is_visible: bool) -> ReduceResult:
        return self.apply("property.set_visibility", {"id": property_id, "is_visible": is_visible})

    def toggle_property_visibility(self, property_id: str) -> ReduceResult:
        prop = self.get_property(property_id)
        is_visible = prop.get("is_visible", True) is not False if prop else True
        return self.set_property_visibility(property_id, not is_visible)

    # -- views --

    def add_view(
        self,
        name: str,
        type: str = "TABLE",
        *,
        view_id: str | None = None,
        is_default: bool = False,
        filters: list[dict[str, Any]] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        visible_properties: list[str] | None = None,
        group_by: str | None = None,
        board_settings: dict[str, Any] | None = None,
    ) -> ReduceResult:
        payload: dict[str, Any] = {
            "id": view_id or self._new_id(),
            "name": name,
            "type": type,
            "is_default": is_default,
            "filters": list(filters or []),
            "sorts": list(sorts or []),
            "visible_properties": visible_properties,
            "group_by": group_by,
        }
        if board_settings is not None:
            payload["board_settings"] = board_settings
        return self.apply("view.add", payload)

    def update_view(self, view_id: str, updates: dict[str, Any]) -> ReduceResult:
        return self.apply("view.update", {"id": view_id, "updates": updates})

    def delete_view(self, view_id: str) -> ReduceResult:
        return self.apply("view.delete", {"id": view_id})

    def set_current_view(self, view_id: str | None) -> ReduceResult:
        return self.apply("view.set_current", {"id": view_id})

    def duplicate_view(self, view_id: str) -> ReduceResult:
        return self.apply("view.duplicate", {"id": view_id, "new_id": self._new_id()})

    # -- selection --

    def select_record(self, record_id: str) -> ReduceResult:
        return self.apply("selection.set", {"ids": [record_id]})

    def select_records(self, record_ids: list[str]) -> ReduceResult:
        return self.apply("selection.set", {"ids": list(record_ids)})

    def select_all(self) -> ReduceResult:
        return self.apply("selection.all")

    def clear_selection(self) -> ReduceResult:
        return self.apply("selection.clear")

    def toggle_record_selection(self, record_id: str) -> ReduceResult:
        return self.apply("selection.toggle", {"id": record_id})

    # -- working query state --

    def set_search_query(self, query: str) -> ReduceResult:
        return self.apply("query.search", {"query": query})

    def set_filters(self, filters: list[dict[str, Any]]) -> ReduceResult:
        return self.apply("query.set_filters", {"filters": list(filters)})

    def add_filter(self, property_id: str, operator: str, value: Any = None) -> ReduceResult:
        return self.apply(
            "query.add_filter",
            {"filter": {"property_id": property_id, "operator": operator, "value": value}},
        )

    def remove_filter(self, index: int) -> ReduceResult:
        return self.apply("query.remove_filter", {"index": index})

    def clear_filters(self) -> ReduceResult:
        return self.apply("query.clear_filters")

    def set_sorts(self, sorts: list[dict[str, Any]]) -> ReduceResult:
        return self.apply("query.set_sorts", {"sorts": list(sorts)})

    def add_sort(self, property_id: str, direction: str = "asc") -> ReduceResult:
        return self.apply("query.add_sort", {"sort": {"property_id": property_id, "direction": direction}})

    def remove_sort(self, property_id: str) -> ReduceResult:
        return self.apply("query.remove_sort", {"property_id": property_id})

    def clear_sorts(self) -> ReduceResult:
        return self.apply("query.clear_sorts")

    def set_group_by(self, property_id: str | None) -> ReduceResult:
        return self.apply("query.group_by", {"property_id": property_id})

    def set_page(self, page: int) -> ReduceResult:
        return self.apply("page.set", {"page": page})

    def set_page_size(self, size: int) -> ReduceResult:
        return self.apply("page.set_size", {"size": size})

    # -- database --

    def update_database(self, **fields: Any) -> ReduceResult:
        return self.apply("database.update", fields)

    def freeze(self) -> ReduceResult:
        return self.apply("database.freeze")

    def unfreeze(self) -> ReduceResult:
        return self.apply("database.unfreeze")

    def share(self, is_shared: bool = True, permissions: dict[str, bool] | None = None) -> ReduceResult:
        payload: dict[str, Any] = {"is_shared": is_shared}
        if permissions:
            payload["permissions"] = dict(permissions)
        return self.apply("database.share", payload)

    # -- reads --

    @property
    def state(self) -> dict[str, Any]:
        """The current snapshot. Replaced (never mutated) by each applied event."""
        return self._state

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    @property
    def database(self) -> dict[str, Any]:
        return self._state["database"]

    @property
    def properties(self) -> list[dict[str, Any]]:
        return self._state["properties"]

    @property
    def records(self) -> list[dict[str, Any]]:
        return self._state["records"]

    @property
    def views(self) -> list[dict[str, Any]]:
        return self._state["views"]

    @property
    def total_records(self) -> int:
        return len(self._state["records"])

    @property
    def selected_records(self) -> list[str]:
        return list(self._state["selected_records"])

    @property
    def is_frozen(self) -> bool:
        return bool(self._state["database"].get("is_frozen"))

    @property
    def current_view(self) -> dict[str, Any] | None:
        view_id = self._state.get("current_view_id")
        if view_id is None:
            return None
        return self.get_view(view_id)

    def get_record(self, record_id: str) -> dict[str, Any] | None:
        return next((r for r in self._state["records"] if r.get("id") == record_id), None)

    def get_property(self, property_id: str) -> dict[str, Any] | None:
        return find_property(self._state["properties"], property_id)

    def get_view(self, view_id: str) -> dict[str, Any] | None:
        return next((v for v in self._state["views"] if v.get("id") == view_id), None)

    def visible_records(self) -> list[dict[str, Any]]:
        """Records after the working search, filters and sorts."""
        s = self._state
        result = apply_search(s["records"], s["search_query"])
        result = apply_filters(result, s["current_filters"])
        return sort_records(result, s["current_sorts"])

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.visible_records()) / self._state["page_size"]))

    def page_records(self) -> list[dict[str, Any]]:
        """The current page of visible records."""
        size = self._state["page_size"]
        start = (self._state["current_page"] - 1) * size
        return self.visible_records()[start : start + size]

    def visible_properties(self) -> list[dict[str, Any]]:
        return get_visible_properties(self._state["properties"], self.current_view)

    def projection(self, month: date | tuple[int, int] | None = None) -> Projection:
        """
        The current view's projection of the visible records.
        A working group_by overrides the view's saved one for boards.
        """
        view = dict(self.current_view or {})
        if self._state.get("group_by") is not None:
            view["group_by"] = self._state["group_by"]
        today = parse_date(self._clock())
        return project(
            self.visible_records(),
            view,
            self._state["properties"],
            month=month,
            today=today.date() if today else None,
        )

    def replay(self) -> dict[str, Any]:
        """Rebuild the current state from the starting state and the event log."""
        return replay(self._events, initial=self._initial)
