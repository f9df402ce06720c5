"""
Tabula Kernel — Shared Types

Constants and data classes used across values, query, projection, reducer
and store. These are the contracts that bind the kernel together.

State, properties, records and views are plain dicts (JSON-shaped, snake_case).
Results handed back to callers (reduce results, projections) are dataclasses.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Property types
# ---------------------------------------------------------------------------

PROPERTY_TYPES: set[str] = {
    "TEXT",
    "TITLE",
    "NUMBER",
    "EMAIL",
    "URL",
    "PHONE",
    "CHECKBOX",
    "DATE",
    "SELECT",
    "MULTI_SELECT",
    "PERSON",
    "FILES",
    "FORMULA",
    "ROLLUP",
    "RELATION",
    "CREATED_TIME",
    "LAST_EDITED_TIME",
    "CREATED_BY",
    "LAST_EDITED_BY",
}

SELECT_TYPES: set[str] = {"SELECT", "MULTI_SELECT"}

# Assigned round-robin to select options created without a color
OPTION_COLORS: list[str] = [
    "#ef4444",  # red
    "#f97316",  # orange
    "#eab308",  # yellow
    "#22c55e",  # green
    "#06b6d4",  # cyan
    "#3b82f6",  # blue
    "#8b5cf6",  # violet
    "#ec4899",  # pink
    "#6b7280",  # gray
]

# Property types whose value lives on the record itself, not in `properties`
SYSTEM_PROPERTY_FIELDS: dict[str, str] = {
    "CREATED_TIME": "created_at",
    "LAST_EDITED_TIME": "updated_at",
    "CREATED_BY": "created_by",
    "LAST_EDITED_BY": "last_edited_by",
}

# ---------------------------------------------------------------------------
# Views, filters, sorts
# ---------------------------------------------------------------------------

VIEW_TYPES: set[str] = {"TABLE", "BOARD", "GALLERY", "LIST", "CALENDAR", "TIMELINE"}

FLAT_VIEW_TYPES: set[str] = {"TABLE", "LIST", "GALLERY"}

DEFAULT_VIEW_TYPE = "TABLE"

SORT_DIRECTIONS: set[str] = {"asc", "desc"}

UNGROUPED_ID = "ungrouped"
UNGROUPED_NAME = "Ungrouped"
UNGROUPED_COLOR = "#6b7280"

# Shown for absent or empty values
EMPTY_PLACEHOLDER = "—"

# ---------------------------------------------------------------------------
# Event registry
# ---------------------------------------------------------------------------

EVENT_TYPES: set[str] = {
    # Records
    "record.add",
    "record.update",
    "record.delete",
    "record.delete_many",
    "record.duplicate",
    # Properties
    "property.add",
    "property.update",
    "property.delete",
    "property.reorder",
    "property.set_visibility",
    # Views
    "view.add",
    "view.update",
    "view.delete",
    "view.set_current",
    "view.duplicate",
    # Selection
    "selection.set",
    "selection.all",
    "selection.clear",
    "selection.toggle",
    # Working query state
    "query.search",
    "query.set_filters",
    "query.add_filter",
    "query.remove_filter",
    "query.clear_filters",
    "query.set_sorts",
    "query.add_sort",
    "query.remove_sort",
    "query.clear_sorts",
    "query.group_by",
    "page.set",
    "page.set_size",
    # Database
    "database.update",
    "database.freeze",
    "database.unfreeze",
    "database.share",
}

# Event types refused while the database is frozen
FROZEN_EVENT_PREFIXES: tuple[str, ...] = ("record.", "property.")

DEFAULT_PERMISSIONS: dict[str, bool] = {
    "can_edit": True,
    "can_delete": True,
    "can_share": True,
    "can_manage_views": True,
    "can_manage_properties": True,
}


# ---------------------------------------------------------------------------
# Data classes: reduction
# ---------------------------------------------------------------------------


@dataclass
class Event:
    """
    Wraps one mutation with metadata for the append-only event log.
    The reducer reads `type`, `payload`, `timestamp` and `actor`.
    """

    id: str
    sequence: int
    timestamp: str  # ISO 8601 UTC
    actor: str
    type: str
    payload: dict[str, Any]


@dataclass
class Warning:
    """A non-fatal issue encountered during reduction."""

    code: str
    message: str
    details: dict[str, Any] | None = None


@dataclass
class ReduceResult:
    """
    Result of applying one event to a state snapshot.
    The reducer never throws; it always returns one of these.
    """

    state: dict[str, Any]
    applied: bool
    warnings: list[Warning] = field(default_factory=list)
    error: str | None = None


# ---------------------------------------------------------------------------
# Data classes: projections
# ---------------------------------------------------------------------------


@dataclass
class FlatProjection:
    """TABLE / LIST / GALLERY: the filtered, sorted records as-is."""

    view_type: str
    records: list[dict[str, Any]]


@dataclass
class BoardColumn:
    id: str
    name: str
    color: str
    records: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class BoardProjection:
    """
    BOARD: one column per select option of the grouping property, plus
    Ungrouped. When Ungrouped is suppressed, unmatched records land in
    `hidden` so that every input record is accounted for exactly once.
    """

    grouping_property: dict[str, Any]
    columns: list[BoardColumn]
    hidden: list[dict[str, Any]] = field(default_factory=list)

    def column(self, column_id: str) -> BoardColumn | None:
        for col in self.columns:
            if col.id == column_id:
                return col
        return None


@dataclass
class CalendarDay:
    date: date
    key: str  # YYYY-MM-DD
    in_month: bool
    records: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CalendarProjection:
    date_property: dict[str, Any]
    year: int
    month: int
    buckets: dict[str, list[dict[str, Any]]]
    days: list[CalendarDay]


@dataclass
class TimelineEntry:
    record: dict[str, Any]
    start: datetime
    end: datetime | None = None


@dataclass
class TimelineSection:
    label: str  # e.g. "March 2024"
    year: int
    month: int
    entries: list[TimelineEntry] = field(default_factory=list)


@dataclass
class TimelineProjection:
    date_property: dict[str, Any]
    end_date_property: dict[str, Any] | None
    sections: list[TimelineSection]


@dataclass
class UnsupportedProjection:
    """
    A view whose configuration can't be rendered (missing grouping/date
    property, unknown view type). Recoverable by fixing the schema or
    switching views.
    """

    view_type: str
    reason: str
    message: str


Projection = FlatProjection | BoardProjection | CalendarProjection | TimelineProjection | UnsupportedProjection


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def now_iso() -> str:
    """Current UTC time as ISO 8601 string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_id() -> str:
    """Fresh opaque id for records, properties and views."""
    return uuid.uuid4().hex
