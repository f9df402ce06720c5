"""
Tabula Kernel — Projection Engine

Turns an already filtered and sorted record list into the shape a view
type renders: flat rows, board columns, calendar buckets or timeline
sections.

Pure functions. Never raises for a misconfigured view: a missing grouping
or date property comes back as an UnsupportedProjection with a reason code.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Any

from tabula.kernel.query import resolve_view_type, schema_order
from tabula.kernel.types import (
    FLAT_VIEW_TYPES,
    UNGROUPED_COLOR,
    UNGROUPED_ID,
    UNGROUPED_NAME,
    BoardColumn,
    BoardProjection,
    CalendarDay,
    CalendarProjection,
    FlatProjection,
    Projection,
    TimelineEntry,
    TimelineProjection,
    TimelineSection,
    UnsupportedProjection,
)
from tabula.kernel.values import date_key, parse_date, select_option_id, select_option_ids

CALENDAR_CELLS = 42

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def project(
    records: list[dict[str, Any]],
    view: dict[str, Any] | None,
    properties: list[dict[str, Any]],
    *,
    month: date | tuple[int, int] | None = None,
    today: date | None = None,
) -> Projection:
    """
    Project records through a view's presentation mode.

    `records` must already be searched, filtered and sorted (see
    query.apply_view); the projection keeps their order inside every group.
    `month` picks the calendar page; it defaults to the month of `today`,
    which defaults to the current UTC date.
    """
    view = view or {}
    view_type = resolve_view_type(view)

    if view_type in FLAT_VIEW_TYPES:
        return FlatProjection(view_type=view_type, records=list(records))
    if view_type == "BOARD":
        return project_board(records, view, properties)
    if view_type == "CALENDAR":
        year, mon = _resolve_month(month, today)
        return project_calendar(records, properties, year, mon)
    if view_type == "TIMELINE":
        return project_timeline(records, properties)

    return UnsupportedProjection(
        view_type=view_type,
        reason="unknown_view_type",
        message=f"View type '{view_type}' is not supported",
    )


# ---------------------------------------------------------------------------
# Board
# ---------------------------------------------------------------------------


def grouping_property(view: dict[str, Any], properties: list[dict[str, Any]]) -> dict[str, Any] | None:
    """
    The SELECT property a board groups by:
    the view's group_by, else the first SELECT among its visible
    properties, else the first SELECT in schema order.
    """
    by_id = {p.get("id"): p for p in properties}

    group_by = view.get("group_by")
    if group_by is not None:
        prop = by_id.get(group_by)
        if prop is not None and prop.get("type") == "SELECT":
            return prop

    for pid in view.get("visible_properties") or []:
        prop = by_id.get(pid)
        if prop is not None and prop.get("type") == "SELECT":
            return prop

    for prop in schema_order(properties):
        if prop.get("type") == "SELECT":
            return prop
    return None


def _board_key(value: Any) -> str | None:
    if isinstance(value, list | tuple):
        ids = select_option_ids(value)
        return ids[0] if ids else None
    return select_option_id(value)


def project_board(
    records: list[dict[str, Any]],
    view: dict[str, Any],
    properties: list[dict[str, Any]],
) -> BoardProjection | UnsupportedProjection:
    prop = grouping_property(view, properties)
    if prop is None:
        return UnsupportedProjection(
            view_type="BOARD",
            reason="no_grouping_property",
            message="Board view needs a Select property to group by",
        )

    columns = [
        BoardColumn(
            id=opt.get("id"),
            name=opt.get("name", opt.get("id")),
            color=opt.get("color") or UNGROUPED_COLOR,
        )
        for opt in prop.get("select_options") or []
    ]
    by_id = {col.id: col for col in columns}

    show_ungrouped = (view.get("board_settings") or {}).get("show_ungrouped", True) is not False
    ungrouped = BoardColumn(id=UNGROUPED_ID, name=UNGROUPED_NAME, color=UNGROUPED_COLOR)
    hidden: list[dict[str, Any]] = []

    for record in records:
        value = (record.get("properties") or {}).get(prop["id"])
        column = by_id.get(_board_key(value))
        if column is not None:
            column.records.append(record)
        elif show_ungrouped:
            ungrouped.records.append(record)
        else:
            hidden.append(record)

    if show_ungrouped:
        columns.append(ungrouped)
    return BoardProjection(grouping_property=prop, columns=columns, hidden=hidden)


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


def _date_properties(properties: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [p for p in schema_order(properties) if p.get("type") == "DATE"]


def _resolve_month(month: date | tuple[int, int] | None, today: date | None) -> tuple[int, int]:
    if isinstance(month, date):
        return month.year, month.month
    if month is not None:
        year, mon = month
        return int(year), int(mon)
    today = today or datetime.now(UTC).date()
    return today.year, today.month


def calendar_grid(year: int, month: int) -> list[date]:
    """42 consecutive days starting on the Sunday on or before the 1st."""
    first = date(year, month, 1)
    # date.weekday(): Monday is 0, Sunday is 6
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    return [start + timedelta(days=i) for i in range(CALENDAR_CELLS)]


def project_calendar(
    records: list[dict[str, Any]],
    properties: list[dict[str, Any]],
    year: int,
    month: int,
) -> CalendarProjection | UnsupportedProjection:
    date_props = _date_properties(properties)
    if not date_props:
        return UnsupportedProjection(
            view_type="CALENDAR",
            reason="no_date_property",
            message="Calendar view needs a Date property",
        )
    prop = date_props[0]

    buckets: dict[str, list[dict[str, Any]]] = {}
    for record in records:
        key = date_key((record.get("properties") or {}).get(prop["id"]))
        if key is None:
            continue
        buckets.setdefault(key, []).append(record)

    days = []
    for day in calendar_grid(year, month):
        key = day.isoformat()
        days.append(
            CalendarDay(
                date=day,
                key=key,
                in_month=day.month == month,
                records=list(buckets.get(key, [])),
            )
        )

    return CalendarProjection(date_property=prop, year=year, month=month, buckets=buckets, days=days)


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------


def section_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def project_timeline(
    records: list[dict[str, Any]],
    properties: list[dict[str, Any]],
) -> TimelineProjection | UnsupportedProjection:
    date_props = _date_properties(properties)
    if not date_props:
        return UnsupportedProjection(
            view_type="TIMELINE",
            reason="no_date_property",
            message="Timeline view needs a Date property",
        )
    start_prop = date_props[0]
    end_prop = date_props[1] if len(date_props) > 1 else None

    entries: list[TimelineEntry] = []
    for record in records:
        props = record.get("properties") or {}
        start = parse_date(props.get(start_prop["id"]))
        if start is None:
            continue
        end = parse_date(props.get(end_prop["id"])) if end_prop else None
        entries.append(TimelineEntry(record=record, start=start, end=end))

    entries.sort(key=lambda e: e.start)

    sections: list[TimelineSection] = []
    for entry in entries:
        year, month = entry.start.year, entry.start.month
        if not sections or (sections[-1].year, sections[-1].month) != (year, month):
            sections.append(TimelineSection(label=section_label(year, month), year=year, month=month))
        sections[-1].entries.append(entry)

    return TimelineProjection(date_property=start_prop, end_date_property=end_prop, sections=sections)
