"""Local timesheet state contracts."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LineDetails(BaseModel):
    """Editable values of one line item."""

    date: str = ""
    minutes_count: float = 0

    model_config = {"frozen": True}


class TimesheetState(BaseModel):
    """Merged view of the timesheet handed to renderers.

    Instances are immutable; every transition returns a new state.
    """

    timesheet_id: str = ""
    description: str = ""
    rate: float = 0
    line_items: dict[str, LineDetails] = Field(default_factory=dict)
    draft: LineDetails = Field(default_factory=LineDetails)

    model_config = {"frozen": True}

    @property
    def total_minutes(self) -> float:
        return sum(item.minutes_count for item in self.line_items.values())

    @property
    def total_cost(self) -> float:
        # Rate is applied to raw minutes.
        return self.rate * self.total_minutes


class SaveResult(BaseModel):
    timesheet_id: str = ""
    created: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
