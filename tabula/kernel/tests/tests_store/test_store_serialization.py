"""
Tabula Serialization -- JSON Export / Import Tests

Covers:
  - export -> import preserves database, schema, records and views
  - The document uses camelCase keys
  - Selection, search and pagination are not exported
  - Import hydrates the working filters / sorts from the current view
  - Unknown current view ids are dropped on import
  - Malformed documents raise SnapshotParseError
  - Documents from a newer format raise VersionNotSupported
  - Mistyped updates are rejected and never break a later export
  - Integers beyond double range import and sort
"""

import json

import pytest

from tabula.kernel.query import sort_records
from tabula.kernel.serialization import SnapshotParseError, VersionNotSupported, export_json, import_json
from tabula.kernel.store import DatabaseStore

PERSISTED = ("database", "properties", "records", "views", "current_view_id")


@pytest.fixture
def populated(store):
    """Tracker store with a board view, a multi-select and some session state."""
    store.add_property("Tags", "MULTI_SELECT", property_id="tags", select_options=["Red", "Blue"], description="Labels")
    store.set_record_value("r1", "tags", ["id_1"])
    store.add_view(
        "Board",
        "BOARD",
        view_id="vb",
        filters=[{"property_id": "priority", "operator": "greater_than", "value": 1}],
        sorts=[{"property_id": "priority", "direction": "desc"}],
        visible_properties=["title", "status"],
        group_by="status",
        board_settings={"show_ungrouped": False},
    )
    store.set_current_view("vb")
    store.update_database(name="Tasks", description="Team tasks")
    store.share(permissions={"can_delete": False})
    store.select_all()
    store.set_search_query("report")
    store.set_page_size(10)
    return store


# ============================================================================
# Round trip
# ============================================================================


class TestRoundTrip:
    def test_persisted_parts_survive(self, populated):
        restored = import_json(export_json(populated.state))
        for key in PERSISTED:
            assert restored[key] == populated.state[key], key

    def test_session_state_starts_fresh(self, populated):
        restored = import_json(export_json(populated.state))
        assert restored["selected_records"] == []
        assert restored["search_query"] == ""
        assert restored["current_page"] == 1
        assert restored["page_size"] == 50

    def test_working_query_hydrated_from_current_view(self, populated):
        populated.clear_filters()
        restored = import_json(export_json(populated.state))
        assert restored["current_view_id"] == "vb"
        assert restored["current_filters"] == [{"property_id": "priority", "operator": "greater_than", "value": 1}]
        assert restored["current_sorts"] == [{"property_id": "priority", "direction": "desc"}]
        assert restored["group_by"] == "status"

    def test_restored_state_drives_a_store(self, populated):
        s = DatabaseStore(import_json(export_json(populated.state)))
        proj = s.projection()
        assert proj.grouping_property["id"] == "status"
        assert [r["id"] for r in proj.column("todo").records] == ["r3", "r1"]
        assert proj.hidden == []

    def test_compact_export(self, populated):
        text = export_json(populated.state, indent=None)
        assert "\n" not in text
        assert import_json(text)["views"] == populated.state["views"]

    def test_bytes_input(self, populated):
        restored = import_json(export_json(populated.state).encode("utf-8"))
        assert restored["database"]["name"] == "Tasks"


# ============================================================================
# Document shape
# ============================================================================


class TestDocumentShape:
    def test_camel_case_keys(self, populated):
        doc = json.loads(export_json(populated.state))
        assert doc["version"] == 1
        assert doc["currentViewId"] == "vb"
        assert doc["isShared"] is True
        assert doc["permissions"]["canDelete"] is False

        tags = next(p for p in doc["properties"] if p["id"] == "tags")
        assert tags["isVisible"] is True
        assert tags["selectOptions"][0] == {"id": "id_1", "name": "Red", "color": "#ef4444"}

        assert "createdAt" in doc["records"][0]
        assert "lastEditedBy" in doc["records"][0]

        board = next(v for v in doc["views"] if v["id"] == "vb")
        assert board["visibleProperties"] == ["title", "status"]
        assert board["groupBy"] == "status"
        assert board["filters"][0]["propertyId"] == "priority"
        assert board["boardSettings"] == {"showUngrouped": False}

    def test_session_state_not_exported(self, populated):
        doc = json.loads(export_json(populated.state))
        for key in ("selectedRecords", "searchQuery", "currentPage", "pageSize", "currentFilters", "currentSorts"):
            assert key not in doc

    def test_accepts_snake_case_input(self):
        text = json.dumps(
            {
                "version": 1,
                "id": "db",
                "name": "Imported",
                "properties": [{"id": "t", "name": "T", "type": "TITLE", "is_visible": False}],
                "records": [],
                "views": [],
            }
        )
        state = import_json(text)
        assert state["properties"][0]["is_visible"] is False

    def test_select_properties_get_option_list(self):
        text = json.dumps(
            {
                "properties": [
                    {"id": "s", "name": "S", "type": "SELECT"},
                    {"id": "t", "name": "T", "type": "TEXT", "selectOptions": [{"id": "a", "name": "A"}]},
                ],
            }
        )
        props = {p["id"]: p for p in import_json(text)["properties"]}
        assert props["s"]["select_options"] == []
        assert "select_options" not in props["t"]

    def test_properties_restored_in_schema_order(self):
        text = json.dumps(
            {
                "properties": [
                    {"id": "b", "name": "B", "type": "TEXT", "order": 1},
                    {"id": "a", "name": "A", "type": "TEXT", "order": 0},
                ],
            }
        )
        assert [p["id"] for p in import_json(text)["properties"]] == ["a", "b"]

    def test_unknown_current_view_dropped(self):
        text = json.dumps({"views": [{"id": "v", "name": "V"}], "currentViewId": "ghost"})
        state = import_json(text)
        assert state["current_view_id"] is None
        assert state["current_filters"] == []

    def test_extra_record_fields_survive(self):
        record = {"id": "r", "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "2024-01-01T00:00:00.000Z", "archived": True}
        state = import_json(json.dumps({"records": [record]}))
        assert state["records"][0]["archived"] is True


# ============================================================================
# Errors
# ============================================================================


class TestImportErrors:
    @pytest.mark.parametrize("text", ["", "{not json", "[1, 2]", "null", '"database"'])
    def test_malformed_document(self, text):
        with pytest.raises(SnapshotParseError):
            import_json(text)

    def test_wrong_shape(self):
        with pytest.raises(SnapshotParseError):
            import_json(json.dumps({"properties": [{"name": "No id"}]}))

    def test_bad_sort_direction(self):
        text = json.dumps({"views": [{"id": "v", "name": "V", "sorts": [{"propertyId": "a", "direction": "sideways"}]}]})
        with pytest.raises(SnapshotParseError):
            import_json(text)

    def test_bad_version_type(self):
        with pytest.raises(SnapshotParseError):
            import_json(json.dumps({"version": "1"}))

    def test_future_version(self):
        with pytest.raises(VersionNotSupported):
            import_json(json.dumps({"version": 2}))

    def test_missing_version_defaults_to_current(self):
        state = import_json("{}")
        assert state["version"] == 1
        assert state["records"] == []


# ============================================================================
# Export after rejected or unusual writes
# ============================================================================


class TestExportStaysValid:
    @pytest.mark.parametrize(
        "method,target,updates",
        [
            ("update_view", "v_table", {"name": None}),
            ("update_view", "v_table", {"group_by": 5}),
            ("update_property", "priority", {"width": "wide"}),
            ("update_property", "priority", {"type": None}),
            ("update_property", "title", {"is_visible": "yes"}),
            ("update_record", "r1", {"created_by": 42}),
        ],
    )
    def test_mistyped_update_is_rejected(self, store, method, target, updates):
        before = export_json(store.state)
        result = getattr(store, method)(target, updates)
        assert not result.applied
        assert result.error.startswith("VALIDATION_ERROR")
        assert export_json(store.state) == before

    def test_huge_numbers_import_and_sort(self):
        record = {"id": "big", "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "2024-01-01T00:00:00.000Z"}
        text = (
            '{"records": ['
            + json.dumps({**record, "properties": {"n": int("9" * 400)}})
            + ","
            + json.dumps({**record, "id": "small", "properties": {"n": 5}})
            + "]}"
        )
        state = import_json(text)
        ordered = sort_records(state["records"], [{"property_id": "n", "direction": "asc"}])
        assert [r["id"] for r in ordered] == ["small", "big"]
