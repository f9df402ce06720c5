"""
Tabula Store -- Dispatch, Notification and Read Tests

Covers:
  - Mutators append events stamped with the store's actor and clock
  - Validation and reducer rejections leave state and log untouched
  - on_change / subscribe fire after each applied event
  - A failing listener is logged and does not undo the mutation
  - visible_records / page_records honour the working query state
  - projection() follows the current view and the working group_by
  - replay() of the log reproduces the current state
"""

import logging

from tabula.kernel.reducer import replay
from tabula.kernel.store import DatabaseStore
from tabula.kernel.types import BoardProjection, CalendarProjection, FlatProjection, UnsupportedProjection


def ids(records):
    return [r["id"] for r in records]


# ============================================================================
# Dispatch and the event log
# ============================================================================


class TestDispatch:
    def test_add_record_stamps_actor_and_clock(self, store):
        result = store.add_record({"title": "Plan sprint"})
        assert result.applied
        rec = store.records[-1]
        assert rec["id"] == "id_1"
        assert rec["created_by"] == "alice"
        assert rec["created_at"] == "2024-03-15T10:00:00.000Z"
        assert store.total_records == 4

    def test_events_are_sequenced(self, store, clock):
        store.add_record(record_id="a")
        clock.advance()
        store.set_record_value("a", "title", "Hello")
        events = store.events
        assert [e.sequence for e in events] == [1, 2]
        assert [e.type for e in events] == ["record.add", "record.update"]
        assert events[1].timestamp == "2024-03-15T10:01:00.000Z"
        assert all(e.actor == "alice" for e in events)
        assert store.get_record("a")["updated_at"] == "2024-03-15T10:01:00.000Z"

    def test_rejected_events_are_not_logged(self, store):
        result = store.delete_record("ghost")
        assert not result.applied
        assert result.error == "RECORD_NOT_FOUND: ghost"
        assert store.events == []
        store.add_record(record_id="a")
        assert [e.sequence for e in store.events] == [1]

    def test_validation_error(self, store):
        before = store.state
        result = store.apply("page.set", {"page": 0})
        assert not result.applied
        assert result.error.startswith("VALIDATION_ERROR")
        assert store.state is before
        assert store.events == []

    def test_unknown_type_fails_validation(self, store):
        result = store.apply("record.explode", {})
        assert result.error == "VALIDATION_ERROR: Unknown event type: record.explode"

    def test_state_is_replaced_not_mutated(self, store):
        before = store.state
        store.add_record(record_id="a")
        assert store.state is not before
        assert len(before["records"]) == 3

    def test_replay_reproduces_state(self, store):
        store.add_property("Tags", "MULTI_SELECT", property_id="tags", select_options=["A", "B"])
        store.add_record({"title": "x", "tags": ["id_1"]}, record_id="x")
        store.add_view("Board", "BOARD", view_id="vb", group_by="tags")
        store.set_current_view("vb")
        store.add_filter("priority", "is_not_empty")
        store.select_all()
        store.delete_property("priority")
        assert store.replay() == store.state

    def test_fresh_store_starts_empty(self):
        s = DatabaseStore(id_factory=lambda: "db_fixed")
        assert s.database["id"] == "db_fixed"
        assert s.records == []
        assert s.current_view is None


# ============================================================================
# Notifications
# ============================================================================


class TestNotifications:
    def test_on_change_receives_new_state(self, tracker_state):
        seen = []
        s = DatabaseStore(tracker_state, on_change=seen.append)
        s.add_record(record_id="a")
        assert len(seen) == 1
        assert seen[0] is s.state

    def test_subscribe_and_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        store.select_all()
        unsubscribe()
        store.clear_selection()
        assert len(seen) == 1
        unsubscribe()

    def test_rejections_do_not_notify(self, store):
        seen = []
        store.subscribe(seen.append)
        store.delete_record("ghost")
        store.apply("page.set", {"page": -1})
        assert seen == []

    def test_failing_listener_is_logged(self, store, caplog):
        seen = []

        def broken(state):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(seen.append)
        with caplog.at_level(logging.ERROR, logger="tabula.kernel.store"):
            result = store.add_record(record_id="a")
        assert result.applied
        assert store.get_record("a") is not None
        assert len(seen) == 1
        assert "listener" in caplog.text


# ============================================================================
# Records, properties and selection through the store
# ============================================================================


class TestMutators:
    def test_duplicate_record_uses_fresh_id(self, store):
        store.duplicate_record("r1")
        assert ids(store.records) == ["r1", "r2", "r3", "id_1"]
        assert store.get_record("id_1")["properties"] == store.get_record("r1")["properties"]

    def test_delete_selected_records(self, store):
        store.select_records(["r1", "r2"])
        store.delete_selected_records()
        assert ids(store.records) == ["r3"]
        assert store.selected_records == []

    def test_toggle_selection(self, store):
        store.toggle_record_selection("r2")
        store.select_record("r3")
        assert store.selected_records == ["r3"]
        store.toggle_record_selection("r2")
        assert store.selected_records == ["r3", "r2"]

    def test_add_property_assigns_option_ids(self, store):
        store.add_property("Tags", "MULTI_SELECT", property_id="tags", select_options=["A", {"name": "B", "color": "#000000"}])
        opts = store.get_property("tags")["select_options"]
        assert opts == [
            {"id": "id_1", "name": "A", "color": "#ef4444"},
            {"id": "id_2", "name": "B", "color": "#000000"},
        ]
        assert store.get_property("tags")["width"] == 200

    def test_toggle_property_visibility(self, store):
        store.toggle_property_visibility("due")
        assert store.get_property("due")["is_visible"] is False
        store.toggle_property_visibility("due")
        assert store.get_property("due")["is_visible"] is True

    def test_reorder_properties(self, store):
        store.reorder_properties(["done", "title"])
        assert [p["id"] for p in store.properties] == ["done", "title", "status", "priority", "due"]

    def test_frozen_database(self, store):
        store.freeze()
        assert store.is_frozen
        result = store.add_record(record_id="z")
        assert result.error.startswith("DATABASE_FROZEN")
        assert store.set_search_query("report").applied
        store.unfreeze()
        assert store.add_record(record_id="z").applied

    def test_update_and_share_database(self, store):
        store.update_database(name="Tasks", description="Team tasks")
        store.share(permissions={"can_delete": False})
        assert store.database["name"] == "Tasks"
        assert store.database["is_shared"] is True
        assert store.database["permissions"]["can_delete"] is False


# ============================================================================
# Reads: visible records, pagination, visible properties
# ============================================================================


class TestReads:
    def test_visible_records_apply_working_query(self, store):
        store.add_filter("status", "equals", "todo")
        store.add_sort("priority", "desc")
        assert ids(store.visible_records()) == ["r3", "r1"]
        store.set_search_query("report")
        assert ids(store.visible_records()) == ["r1"]

    def test_view_switch_loads_saved_query(self, store):
        store.add_view("Urgent", view_id="v_urgent", sorts=[{"property_id": "priority", "direction": "desc"}])
        store.set_current_view("v_urgent")
        assert ids(store.visible_records()) == ["r3", "r1", "r2"]
        store.set_current_view("v_table")
        assert ids(store.visible_records()) == ["r1", "r2", "r3"]

    def test_pagination(self, store):
        store.set_page_size(2)
        assert store.total_pages == 2
        assert ids(store.page_records()) == ["r1", "r2"]
        store.set_page(2)
        assert ids(store.page_records()) == ["r3"]
        store.set_page(5)
        assert store.page_records() == []

    def test_visible_properties(self, store):
        assert len(store.visible_properties()) == 5
        store.set_property_visibility("due", False)
        assert "due" not in [p["id"] for p in store.visible_properties()]
        store.update_view("v_table", {"visible_properties": ["status", "title"]})
        assert [p["id"] for p in store.visible_properties()] == ["title", "status"]

    def test_current_view(self, store):
        assert store.current_view["id"] == "v_table"
        store.set_current_view(None)
        assert store.current_view is None


# ============================================================================
# Projection
# ============================================================================


class TestProjection:
    def test_table(self, store):
        proj = store.projection()
        assert isinstance(proj, FlatProjection)
        assert proj.view_type == "TABLE"
        assert ids(proj.records) == ["r1", "r2", "r3"]

    def test_board(self, store):
        store.add_view("Board", "BOARD", view_id="vb")
        store.set_current_view("vb")
        proj = store.projection()
        assert isinstance(proj, BoardProjection)
        assert proj.grouping_property["id"] == "status"
        assert ids(proj.column("todo").records) == ["r1", "r3"]
        assert ids(proj.column("done").records) == ["r2"]
        assert proj.column("doing").records == []

    def test_board_working_group_by_overrides_view(self, store):
        store.add_property("Area", "SELECT", property_id="area", select_options=[{"id": "ops", "name": "Ops"}])
        store.set_record_value("r2", "area", "ops")
        store.add_view("Board", "BOARD", view_id="vb", group_by="status")
        store.set_current_view("vb")
        store.set_group_by("area")
        proj = store.projection()
        assert proj.grouping_property["id"] == "area"
        assert ids(proj.column("ops").records) == ["r2"]
        assert ids(proj.columns[-1].records) == ["r1", "r3"]

    def test_board_without_select_property(self, tracker_state):
        s = DatabaseStore(tracker_state)
        s.delete_property("status")
        s.add_view("Board", "BOARD", view_id="vb")
        s.set_current_view("vb")
        proj = s.projection()
        assert isinstance(proj, UnsupportedProjection)
        assert proj.reason == "no_grouping_property"

    def test_calendar_defaults_to_clock_month(self, store):
        store.add_view("Cal", "CALENDAR", view_id="vc")
        store.set_current_view("vc")
        proj = store.projection()
        assert isinstance(proj, CalendarProjection)
        assert (proj.year, proj.month) == (2024, 3)
        assert ids(proj.buckets["2024-03-05"]) == ["r1"]
        assert ids(proj.buckets["2024-03-12"]) == ["r2"]

    def test_calendar_explicit_month(self, store):
        store.add_view("Cal", "CALENDAR", view_id="vc")
        store.set_current_view("vc")
        proj = store.projection(month=(2024, 4))
        assert proj.month == 4
        assert len(proj.days) == 42

    def test_projection_uses_filtered_records(self, store):
        store.add_filter("status", "equals", "done")
        assert ids(store.projection().records) == ["r2"]


def test_replay_helper_matches_store(tracker_state, store):
    store.add_record(record_id="a")
    assert replay([e for e in store.events], initial=tracker_state) == store.state
