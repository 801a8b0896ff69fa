"""Exception hierarchy for Tallysheet."""

from __future__ import annotations


class TallysheetError(Exception):
    """Base exception for all Tallysheet errors."""


class ConfigError(TallysheetError):
    """Configuration loading or validation failure."""


class StoreError(TallysheetError):
    """Remote store operation failure."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class AuthenticationError(StoreError):
    """Authentication/authorization failure."""
