"""State observer protocol for the timesheet controller.

The controller reports every committed state change and every dropped write;
consumers (e.g. the CLI's live table) implement ``StateObserver``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tallysheet.contracts.state import TimesheetState


class StateObserver(ABC):
    """Observer interface for controller state events."""

    @abstractmethod
    def state_changed(self, state: TimesheetState) -> None:
        """The merged state was replaced by *state*."""
        ...  # pragma: no cover

    @abstractmethod
    def write_failed(self, key: str, error: BaseException) -> None:
        """The remote write for *key* failed and was dropped."""
        ...  # pragma: no cover


class NullStateObserver(StateObserver):
    """No-op implementation used when nothing renders the state."""

    def state_changed(self, state: TimesheetState) -> None:
        pass

    def write_failed(self, key: str, error: BaseException) -> None:
        pass
