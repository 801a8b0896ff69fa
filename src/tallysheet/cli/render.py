"""Rich rendering of timesheet state."""

from __future__ import annotations

from types import TracebackType

from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from tallysheet.contracts.state import LineDetails, TimesheetState
from tallysheet.engine.identifiers import is_temporary_id
from tallysheet.engine.observer import StateObserver


def format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def sorted_line_items(state: TimesheetState) -> list[tuple[str, LineDetails]]:
    """Line items by date; undated entries last, in insertion order."""
    return sorted(state.line_items.items(), key=lambda pair: (pair[1].date == "", pair[1].date))


def build_line_item_table(state: TimesheetState) -> Table:
    table = Table(title=state.description or "(no description)", title_justify="left")
    table.add_column("Key", style="dim")
    table.add_column("Date")
    table.add_column("Minutes", justify="right")
    for key, details in sorted_line_items(state):
        label = Text(key, style="yellow") if is_temporary_id(key) else Text(key)
        table.add_row(label, details.date or "-", format_number(details.minutes_count))
    return table


def format_totals(state: TimesheetState) -> str:
    return "\n".join(
        [
            f"Rate:          {format_number(state.rate)}",
            f"Total Minutes: {format_number(state.total_minutes)}",
            f"Total Cost:    {format_number(state.total_cost)}",
        ]
    )


def render_state(state: TimesheetState) -> Group:
    return Group(build_line_item_table(state), Text(format_totals(state), style="bold"))


class RichStateObserver(StateObserver):
    """Live terminal view of the timesheet powered by Rich.

    Use as a context manager so the live display is properly started/stopped::

        with RichStateObserver() as observer:
            await controller.run()
    """

    def __init__(self, state: TimesheetState | None = None) -> None:
        self._console = Console(stderr=True)
        self._live = Live(render_state(state or TimesheetState()), console=self._console, auto_refresh=False)

    def __enter__(self) -> RichStateObserver:
        self._live.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._live.stop()

    def state_changed(self, state: TimesheetState) -> None:
        self._live.update(render_state(state), refresh=True)

    def write_failed(self, key: str, error: BaseException) -> None:
        self._console.print(f"[red]✗[/red] write for {key} failed: {error}")
