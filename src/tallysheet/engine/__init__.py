"""Reconciliation engine exports."""

from .controller import TimesheetController
from .editing import EditingTracker
from .identifiers import extract_id_from_response, is_temporary_id, new_temporary_id, normalize_line_items
from .observer import NullStateObserver, StateObserver
from .scheduler import DebouncedScheduler

__all__ = [
    "DebouncedScheduler",
    "EditingTracker",
    "NullStateObserver",
    "StateObserver",
    "TimesheetController",
    "extract_id_from_response",
    "is_temporary_id",
    "new_temporary_id",
    "normalize_line_items",
]
