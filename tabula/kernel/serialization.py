"""
Tabula Kernel — JSON Import / Export

Converts a state snapshot to and from the camelCase JSON document described
by tabula.models. This is the only place where input from outside the
process is parsed, so it is also where the kernel raises exceptions.

Selection, search and pagination are session state: export drops them and
import starts them fresh. The working filters and sorts are re-hydrated
from the current view.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from tabula.config import settings
from tabula.kernel.query import schema_order
from tabula.kernel.reducer import empty_state, hydrate_working_query
from tabula.kernel.types import SELECT_TYPES
from tabula.models.database import DatabaseModel

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SnapshotParseError(Exception):
    """Document is not valid JSON or does not match the database shape."""

    pass


class VersionNotSupported(Exception):
    """Snapshot version is from a future format."""

    pass


# ---------------------------------------------------------------------------
# State <-> model
# ---------------------------------------------------------------------------


def to_model(state: dict[str, Any]) -> DatabaseModel:
    """Build the wire model from a state snapshot."""
    database = state.get("database", {})
    return DatabaseModel.model_validate(
        {
            **database,
            "version": state.get("version", settings.SNAPSHOT_VERSION),
            "properties": state.get("properties", []),
            "records": state.get("records", []),
            "views": state.get("views", []),
            "current_view_id": state.get("current_view_id"),
        }
    )


def from_model(model: DatabaseModel) -> dict[str, Any]:
    """Build a fresh state snapshot from a wire model."""
    state = empty_state(database_id=model.id, name=model.name)
    state["version"] = model.version
    state["database"].update(
        {
            "icon": model.icon,
            "description": model.description,
            "is_frozen": model.is_frozen,
            "is_shared": model.is_shared,
            "permissions": model.permissions.model_dump(),
        }
    )

    properties = []
    for prop in model.properties:
        data = prop.model_dump(exclude_none=True)
        if data["type"] in SELECT_TYPES:
            data.setdefault("select_options", [])
        else:
            data.pop("select_options", None)
        properties.append(data)
    state["properties"] = schema_order(properties)

    state["records"] = [record.model_dump() for record in model.records]

    views = []
    for view in model.views:
        data = view.model_dump()
        if data.get("board_settings") is None:
            data.pop("board_settings", None)
        views.append(data)
    state["views"] = views

    current = next((v for v in views if v["id"] == model.current_view_id), None)
    state["current_view_id"] = current["id"] if current else None
    hydrate_working_query(state, current)
    return state


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def export_json(state: dict[str, Any], *, indent: int | None = 2) -> str:
    """Serialize a state snapshot to the camelCase JSON document."""
    return to_model(state).model_dump_json(by_alias=True, indent=indent)


def import_json(text: str | bytes) -> dict[str, Any]:
    """
    Parse a JSON document into a state snapshot.

    Raises SnapshotParseError for malformed input and VersionNotSupported
    for a document written by a newer format.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotParseError(f"Failed to parse database document: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotParseError("Database document must be a JSON object")

    version = data.get("version", settings.SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool):
        raise SnapshotParseError(f"Invalid snapshot version: {version!r}")
    if version > settings.SNAPSHOT_VERSION:
        raise VersionNotSupported(f"Snapshot version {version} not supported")

    try:
        model = DatabaseModel.model_validate(data)
    except ValidationError as e:
        raise SnapshotParseError(f"Invalid database document: {e}") from e

    return from_model(model)
