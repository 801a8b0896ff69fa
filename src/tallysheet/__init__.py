"""Public API surface for Tallysheet."""

__version__ = "0.3.0"

from tallysheet.auth import TokenResolver, create_token_resolver
from tallysheet.config import TallysheetConfig, load_config
from tallysheet.contracts.exceptions import AuthenticationError, ConfigError, StoreError, TallysheetError
from tallysheet.contracts.records import RecordModel, Snapshot
from tallysheet.contracts.state import LineDetails, SaveResult, TimesheetState
from tallysheet.contracts.store import RemoteStore
from tallysheet.engine import (
    DebouncedScheduler,
    EditingTracker,
    NullStateObserver,
    StateObserver,
    TimesheetController,
    extract_id_from_response,
    normalize_line_items,
)
from tallysheet.sdk import open_controller
from tallysheet.stores import GraphQLStore, InMemoryStore, create_store

__all__ = [
    "AuthenticationError",
    "ConfigError",
    "DebouncedScheduler",
    "EditingTracker",
    "GraphQLStore",
    "InMemoryStore",
    "LineDetails",
    "NullStateObserver",
    "RecordModel",
    "RemoteStore",
    "SaveResult",
    "Snapshot",
    "StateObserver",
    "StoreError",
    "TallysheetConfig",
    "TallysheetError",
    "TimesheetController",
    "TimesheetState",
    "TokenResolver",
    "__version__",
    "create_store",
    "create_token_resolver",
    "extract_id_from_response",
    "load_config",
    "normalize_line_items",
    "open_controller",
]
