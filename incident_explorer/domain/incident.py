"""Canonical incident record and the filter selection applied to records.

An IncidentRecord is the normalised form of one raw point feature.  It
is validated once at the ingestion boundary so the filter and
aggregation code never has to re-check coordinates or timestamps.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from incident_explorer.domain.enums import ExtentMode
from incident_explorer.foundation.calendar import ensure_aware

UNKNOWN_LABEL = "Unknown"


# ── Incident Record ──────────────────────────────────────────────────────────

class IncidentRecord(BaseModel):
    """One incident, immutable after creation."""

    id: str = Field(..., min_length=1, description="Stable identifier for the session")
    coordinates: tuple[float, float] = Field(..., description="(longitude, latitude)")
    properties: dict[str, Any] = Field(
        default_factory=dict,
        description="Source property bag enriched with the resolved fields",
    )
    timestamp: datetime = Field(..., description="Resolved point in time (UTC-aware)")
    category: str = Field(UNKNOWN_LABEL, description="Resolved category label")
    sheet: str = Field(UNKNOWN_LABEL, description="Source sheet label")

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


# ── Filter State ─────────────────────────────────────────────────────────────

class FilterState(BaseModel):
    """Category / sheet allow-lists and the spatial-extent mode.

    An empty allow-list restricts nothing.
    """

    categories: tuple[str, ...] = ()
    sheets: tuple[str, ...] = ()
    extent_mode: ExtentMode = ExtentMode.ALL

    model_config = {"frozen": True}

    def allows_category(self, category: str) -> bool:
        return not self.categories or category in self.categories

    def allows_sheet(self, sheet: str) -> bool:
        return not self.sheets or sheet in self.sheets
