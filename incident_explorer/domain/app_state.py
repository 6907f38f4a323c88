"""AppState — the single selection every view is derived from.

Immutable value.  The StateStore replaces it wholesale on each
transition and bumps ``version``, so consumers can memoise on the
version number alone.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from incident_explorer.domain.enums import Language, TimeStep
from incident_explorer.domain.extent import TimeExtent
from incident_explorer.domain.incident import FilterState

DEFAULT_BASEMAP = "dark-gray-vector"


class AppState(BaseModel):
    """Language, basemap, time window, granularity and filters."""

    version: int = Field(1, ge=1, description="Incremented on every effective transition")
    lang: Language = Language.EN
    basemap: str = DEFAULT_BASEMAP
    time_extent: TimeExtent
    time_step: TimeStep = TimeStep.MONTH
    filters: FilterState = Field(default_factory=FilterState)

    model_config = {"frozen": True}

    def same_selection(self, other: AppState) -> bool:
        """Equality ignoring the version counter."""
        return (
            self.lang == other.lang
            and self.basemap == other.basemap
            and self.time_extent == other.time_extent
            and self.time_step == other.time_step
            and self.filters == other.filters
        )

    def summary(self) -> dict:
        return {
            "version": self.version,
            "lang": self.lang.value,
            "basemap": self.basemap,
            "time_start": self.time_extent.start.isoformat(),
            "time_end": self.time_extent.end.isoformat(),
            "time_step": self.time_step.value,
            "categories": list(self.filters.categories),
            "sheets": list(self.filters.sheets),
            "extent_mode": self.filters.extent_mode.value,
        }
