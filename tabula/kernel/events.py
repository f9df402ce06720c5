"""
Tabula Kernel — Event Construction

Factory for creating well-formed events.
Used by the store to wrap mutations before feeding them to the reducer,
and by tests to build events concisely.
"""

from __future__ import annotations

from typing import Any

from tabula.kernel.types import Event, now_iso


def make_event(
    seq: int,
    type: str,
    payload: dict[str, Any] | None = None,
    *,
    actor: str = "user_test",
    timestamp: str | None = None,
    event_id: str | None = None,
) -> Event:
    """
    Build a complete Event from minimal inputs.

    seq determines both the event ID and the sequence number.
    Everything else has sensible defaults for testing.
    """
    if not isinstance(seq, int) or isinstance(seq, bool) or seq < 0:
        raise ValueError(f"Event sequence must be a non-negative int, got {seq!r}")
    if not isinstance(type, str) or not type:
        raise ValueError("Event type must be a non-empty string")
    if payload is not None and not isinstance(payload, dict):
        raise TypeError("Event payload must be a dict")

    ts = timestamp or now_iso()
    eid = event_id or f"evt_{ts[:10].replace('-', '')}_{seq:03d}"

    return Event(
        id=eid,
        sequence=seq,
        timestamp=ts,
        actor=actor,
        type=type,
        payload=dict(payload or {}),
    )
