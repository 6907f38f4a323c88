"""Pydantic models for the derived views handed to rendering collaborators.

None of these are stored; they are recomputed from the filtered records
whenever the state, the dataset or the viewport changes.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from incident_explorer.domain.extent import TimeExtent
from incident_explorer.domain.incident import IncidentRecord


class TimeBucket(BaseModel):
    start: datetime
    end: datetime = Field(..., description="start advanced by exactly one step")
    count: int

    model_config = {"frozen": True}


class CategoryCount(BaseModel):
    name: str
    count: int

    model_config = {"frozen": True}


class HourCount(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    count: int

    model_config = {"frozen": True}


class PeriodDelta(BaseModel):
    """Change from the previous period; both fields are None when undefined."""

    diff: float | None = None
    pct: float | None = None

    model_config = {"frozen": True}

    @property
    def defined(self) -> bool:
        return self.diff is not None


class KpiSummary(BaseModel):
    """Current vs previous-period headline numbers."""

    total: int
    previous_total: int
    total_delta: PeriodDelta
    category_count: int
    previous_category_count: int
    category_delta: PeriodDelta
    time_extent: TimeExtent
    previous_time_extent: TimeExtent

    model_config = {"frozen": True}


class DerivedViews(BaseModel):
    """Everything the rendering layer needs for one state snapshot."""

    state_version: int
    records: list[IncidentRecord] = Field(default_factory=list)
    time_series: list[TimeBucket] = Field(default_factory=list)
    top_categories: list[CategoryCount] = Field(default_factory=list)
    hour_distribution: list[HourCount] = Field(default_factory=list)
    kpis: KpiSummary

    model_config = {"frozen": True}

    @property
    def filtered_count(self) -> int:
        return len(self.records)

    def to_payload(self, include_records: bool = False) -> dict:
        """JSON-ready dict; records are reduced to their ids unless asked for."""
        payload = self.model_dump(mode="json", exclude={"records"})
        payload["filtered_count"] = self.filtered_count
        if include_records:
            payload["records"] = [r.model_dump(mode="json") for r in self.records]
        else:
            payload["record_ids"] = [r.id for r in self.records]
        return payload
