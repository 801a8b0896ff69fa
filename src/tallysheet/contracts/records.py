"""Remote record contracts."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from tallysheet.contracts.state import LineDetails


class RecordModel(StrEnum):
    """Record types exposed by the hosted store."""

    TIMESHEET = "Timesheet"
    LINE_ITEM = "LineItem"


class Snapshot(BaseModel):
    """Live query result: every record of one model visible to the caller."""

    items: list[dict[str, Any] | None] = Field(default_factory=list)


# Wire field names, as stored remotely.
TIMESHEET_ID = "timesheetId"
DATE = "date"
MINUTES = "minutes"
SYSTEM_FIELDS = ("id", "owner", "createdAt", "updatedAt")
TIMESHEET_FIELDS = ("description", "rate")
LINE_ITEM_FIELDS = (TIMESHEET_ID, DATE, MINUTES)


def timesheet_fields(description: str, rate: float) -> dict[str, Any]:
    return dict(zip(TIMESHEET_FIELDS, (description, rate), strict=True))


def line_item_fields(details: LineDetails, timesheet_id: str | None = None) -> dict[str, Any]:
    """Wire payload for a line item; the parent id is only sent on create."""
    fields: dict[str, Any] = {DATE: details.date or None, MINUTES: details.minutes_count}
    if timesheet_id is not None:
        fields = {TIMESHEET_ID: timesheet_id, **fields}
    return fields


def eq_filter(field: str, value: str) -> dict[str, Any]:
    return {field: {"eq": value}}
