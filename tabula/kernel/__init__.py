"""
Tabula Kernel — the pure engine.

Components:
  values      — JS-compatible coercion and tagged value reading
  query       — search, filter, sort, visible properties
  projection  — (records, view, properties) → board / calendar / timeline / flat
  primitives  — structural validation of event payloads
  reducer     — (state, event) → state  (pure, deterministic)
  store       — DatabaseStore: holds state + event log, notifies listeners
  serialization — JSON import / export of a database
"""

from tabula.kernel.events import make_event
from tabula.kernel.primitives import validate_primitive
from tabula.kernel.projection import calendar_grid, project
from tabula.kernel.query import (
    apply_view,
    compare_records,
    get_visible_properties,
    matches,
    schema_order,
    search,
    sort_records,
)
from tabula.kernel.reducer import empty_state, reduce, replay
from tabula.kernel.serialization import SnapshotParseError, VersionNotSupported, export_json, import_json
from tabula.kernel.store import DatabaseStore
from tabula.kernel.types import Event, ReduceResult, Warning

__all__ = [
    "DatabaseStore",
    "Event",
    "ReduceResult",
    "SnapshotParseError",
    "VersionNotSupported",
    "Warning",
    "apply_view",
    "calendar_grid",
    "compare_records",
    "empty_state",
    "export_json",
    "get_visible_properties",
    "import_json",
    "make_event",
    "matches",
    "project",
    "reduce",
    "replay",
    "schema_order",
    "search",
    "sort_records",
    "validate_primitive",
]
