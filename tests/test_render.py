"""Tests for Rich rendering of timesheet state."""

from __future__ import annotations

from rich.console import Console

from tallysheet.cli.render import (
    RichStateObserver,
    format_number,
    format_totals,
    render_state,
    sorted_line_items,
)
from tallysheet.contracts.state import LineDetails, TimesheetState
from tallysheet.engine.observer import NullStateObserver, StateObserver


def _state() -> TimesheetState:
    return TimesheetState(
        timesheet_id="ts-1",
        description="June",
        rate=2,
        line_items={
            "b": LineDetails(date="2024-06-02", minutes_count=90),
            "undated": LineDetails(minutes_count=15.5),
            "a": LineDetails(date="2024-06-01", minutes_count=30),
        },
    )


def test_format_number() -> None:
    assert format_number(240.0) == "240"
    assert format_number(15.5) == "15.5"


def test_sorted_line_items_puts_undated_last() -> None:
    assert [key for key, _ in sorted_line_items(_state())] == ["a", "b", "undated"]


def test_format_totals() -> None:
    assert format_totals(_state()).splitlines() == [
        "Rate:          2",
        "Total Minutes: 135.5",
        "Total Cost:    271",
    ]


def test_render_state_lists_rows() -> None:
    console = Console(record=True, width=100)
    console.print(render_state(_state()))
    text = console.export_text()

    assert "June" in text
    assert "2024-06-01" in text
    assert "Total Cost:    271" in text


class TestObservers:
    def test_implementations_share_interface(self) -> None:
        assert issubclass(NullStateObserver, StateObserver)
        assert issubclass(RichStateObserver, StateObserver)

    def test_null_observer_is_noop(self) -> None:
        observer = NullStateObserver()
        observer.state_changed(_state())
        observer.write_failed("description", RuntimeError("x"))

    def test_rich_observer_context_manager(self) -> None:
        observer = RichStateObserver()
        with observer as entered:
            assert entered is observer
            entered.state_changed(_state())
            entered.write_failed("description", RuntimeError("x"))
