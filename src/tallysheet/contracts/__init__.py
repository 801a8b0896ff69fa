"""Public contracts for Tallysheet."""

from tallysheet.contracts.exceptions import AuthenticationError, ConfigError, StoreError, TallysheetError
from tallysheet.contracts.records import (
    LINE_ITEM_FIELDS,
    TIMESHEET_FIELDS,
    RecordModel,
    Snapshot,
    eq_filter,
    line_item_fields,
    timesheet_fields,
)
from tallysheet.contracts.state import LineDetails, SaveResult, TimesheetState
from tallysheet.contracts.store import RemoteStore

__all__ = [
    "LINE_ITEM_FIELDS",
    "TIMESHEET_FIELDS",
    "AuthenticationError",
    "ConfigError",
    "LineDetails",
    "RecordModel",
    "RemoteStore",
    "SaveResult",
    "Snapshot",
    "StoreError",
    "TallysheetError",
    "TimesheetState",
    "eq_filter",
    "line_item_fields",
    "timesheet_fields",
]
