"""
Kernel test configuration.

Shared builders for a small task-tracker database. Tests that need a
state go through the reducer (replay) so fixtures always match what the
real event path produces.
"""

import pytest

from tabula.kernel.events import make_event
from tabula.kernel.reducer import replay
from tabula.kernel.store import DatabaseStore

TS = "2024-03-01T09:00:00.000Z"

STATUS_OPTIONS = [
    {"id": "todo", "name": "To do", "color": "#ef4444"},
    {"id": "doing", "name": "Doing", "color": "#eab308"},
    {"id": "done", "name": "Done", "color": "#22c55e"},
]


def tracker_events():
    """Schema (title, status, priority, due, done) plus three tasks and a table view."""
    payloads = [
        ("property.add", {"id": "title", "name": "Title", "type": "TITLE"}),
        ("property.add", {"id": "status", "name": "Status", "type": "SELECT", "select_options": STATUS_OPTIONS}),
        ("property.add", {"id": "priority", "name": "Priority", "type": "NUMBER"}),
        ("property.add", {"id": "due", "name": "Due", "type": "DATE"}),
        ("property.add", {"id": "done", "name": "Done", "type": "CHECKBOX"}),
        ("record.add", {"id": "r1", "properties": {"title": "Write report", "status": "todo", "priority": 2, "due": "2024-03-05"}}),
        ("record.add", {"id": "r2", "properties": {"title": "Team meeting", "status": "done", "priority": 1, "due": "2024-03-12"}}),
        ("record.add", {"id": "r3", "properties": {"title": "Ship release", "status": "todo", "priority": 3}}),
        ("view.add", {"id": "v_table", "name": "All tasks", "type": "TABLE", "is_default": True}),
        ("view.set_current", {"id": "v_table"}),
    ]
    return [
        make_event(seq=i + 1, type=t, payload=p, timestamp=TS)
        for i, (t, p) in enumerate(payloads)
    ]


@pytest.fixture
def tracker_state():
    return replay(tracker_events())


@pytest.fixture
def next_seq():
    """Sequence numbers for events applied on top of tracker_state."""
    counter = {"seq": len(tracker_events())}

    def _next():
        counter["seq"] += 1
        return counter["seq"]

    return _next


class Ids:
    """Deterministic id factory: id_1, id_2, ..."""

    def __init__(self, prefix="id"):
        self.prefix = prefix
        self.n = 0

    def __call__(self):
        self.n += 1
        return f"{self.prefix}_{self.n}"


class Clock:
    """Deterministic clock; advance() moves it one minute forward."""

    def __init__(self, start="2024-03-15T10:00:00.000Z"):
        self.minute = 0
        self.start = start

    def __call__(self):
        return self.start.replace("10:00:", f"10:{self.minute:02d}:")

    def advance(self):
        self.minute += 1


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store(clock):
    """A store holding the tracker database, with deterministic ids and clock."""
    return DatabaseStore(replay(tracker_events()), actor="alice", clock=clock, id_factory=Ids())
