"""Pure state transitions for merging local edits with server snapshots.

Every function returns a new ``TimesheetState``; none of them suspend, so a
caller that reads editing flags and applies a transition does so atomically
with respect to other event-loop handlers.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from tallysheet.contracts.state import LineDetails, TimesheetState
from tallysheet.engine.identifiers import coerce_number, extract_id_from_response, is_temporary_id

DESCRIPTION = "description"
RATE = "rate"
TIMESHEET = "timesheet"
TIMESHEET_KEYS = frozenset({DESCRIPTION, RATE})

IsEditing = Callable[[str], bool]


def coerce_non_negative(value: Any) -> float:
    return max(0.0, coerce_number(value))


def total_minutes(line_items: Mapping[str, LineDetails]) -> float:
    return sum(item.minutes_count for item in line_items.values())


def total_cost(rate: float, line_items: Mapping[str, LineDetails]) -> float:
    return rate * total_minutes(line_items)


def apply_local_edit(state: TimesheetState, key: str, changes: Mapping[str, Any]) -> TimesheetState:
    """Apply a user edit to a timesheet field or to the line item under *key*."""
    if key in TIMESHEET_KEYS:
        unknown = set(changes) - TIMESHEET_KEYS
        if unknown:
            raise ValueError(f"Unknown timesheet fields: {sorted(unknown)}")
        return state.model_copy(update=dict(changes))

    details = state.line_items.get(key, LineDetails())
    line_items = dict(state.line_items)
    line_items[key] = details.model_copy(update=dict(changes))
    return state.model_copy(update={"line_items": line_items})


def remove_line_item(state: TimesheetState, key: str) -> TimesheetState:
    if key not in state.line_items:
        return state
    line_items = {item_key: details for item_key, details in state.line_items.items() if item_key != key}
    return state.model_copy(update={"line_items": line_items})


def select_primary_timesheet(
    records: Iterable[Mapping[str, Any] | None],
) -> tuple[Mapping[str, Any] | None, list[Mapping[str, Any]]]:
    """Split timesheet records into the authoritative first record and duplicates."""
    present = [record for record in records if record is not None]
    if not present:
        return None, []
    return present[0], present[1:]


def apply_server_snapshot(
    state: TimesheetState,
    record: Mapping[str, Any] | None,
    is_editing: IsEditing,
) -> TimesheetState:
    """Merge the authoritative timesheet record; fields being edited keep their local value."""
    if record is None:
        return state

    update: dict[str, Any] = {}
    record_id = extract_id_from_response(record)
    if record_id and record_id != state.timesheet_id:
        update["timesheet_id"] = record_id
    if not is_editing(DESCRIPTION) and record.get(DESCRIPTION) is not None:
        update["description"] = str(record[DESCRIPTION])
    if not is_editing(RATE) and record.get(RATE) is not None:
        update["rate"] = coerce_non_negative(record[RATE])
    if not update:
        return state
    return state.model_copy(update=update)


def apply_line_item_snapshot(
    state: TimesheetState,
    incoming: Mapping[str, LineDetails],
    is_editing: IsEditing,
) -> TimesheetState:
    """Merge a full line item snapshot into local state.

    Local items are kept while being edited or while temporary; otherwise the
    server copy replaces them, and items missing from the server are dropped.
    Server items absent locally are added unless their key is being edited,
    which means a local delete is still in flight.
    """
    merged: dict[str, LineDetails] = {}
    for key, local in state.line_items.items():
        if is_editing(key):
            merged[key] = local
        elif key in incoming:
            merged[key] = incoming[key]
        elif is_temporary_id(key):
            merged[key] = local

    for key, remote in incoming.items():
        if key in state.line_items or is_editing(key):
            continue
        merged[key] = remote

    if merged == state.line_items:
        return state
    return state.model_copy(update={"line_items": merged})


def apply_write_settled(state: TimesheetState, key: str, canonical_id: str | None) -> TimesheetState:
    """Record the canonical id returned by a create.

    Timesheet keys fill the empty timesheet id. A temporary line item key is
    replaced in place by *canonical_id*; canonical keys never change again.
    """
    if not canonical_id:
        return state

    if key == TIMESHEET or key in TIMESHEET_KEYS:
        if state.timesheet_id:
            return state
        return state.model_copy(update={"timesheet_id": canonical_id})

    if not is_temporary_id(key) or key not in state.line_items:
        return state
    line_items: dict[str, LineDetails] = {}
    for item_key, details in state.line_items.items():
        if item_key == key:
            line_items[canonical_id] = details
        elif item_key != canonical_id:
            line_items[item_key] = details
    return state.model_copy(update={"line_items": line_items})
