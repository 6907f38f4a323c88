"""Temporal and spatial extents.

Both are immutable value objects.  A TimeExtent can never be inverted:
construction fails if start is after end, so every extent held by the
application state is well-formed by construction.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from pydantic import BaseModel, Field, field_validator, model_validator

from incident_explorer.foundation.calendar import add_months, ensure_aware


class TimeExtent(BaseModel):
    """Closed time interval ``[start, end]``."""

    start: datetime
    end: datetime

    model_config = {"frozen": True}

    @field_validator("start", "end")
    @classmethod
    def must_be_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode="after")
    def start_not_after_end(self) -> "TimeExtent":
        if self.start > self.end:
            raise ValueError(f"start {self.start.isoformat()} is after end {self.end.isoformat()}")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, ts: datetime) -> bool:
        """Inclusive on both ends."""
        return self.start <= ts <= self.end

    def clamp_to(self, full: "TimeExtent") -> "TimeExtent":
        """Intersect with *full*."""
        return clamp_window(self.start, self.end, full)

    def previous_period(self) -> "TimeExtent":
        """The window of equal length that ends where this one starts."""
        return TimeExtent(start=self.start - self.duration, end=self.start)


def clamp_window(start: datetime, end: datetime, full: TimeExtent) -> TimeExtent:
    """Clamp a requested ``(start, end)`` pair into *full*.

    The request may be inverted or disjoint from *full*; when the clamped
    start would pass the clamped end, *full* itself is returned.
    """
    start, end = ensure_aware(start), ensure_aware(end)
    clamped_start = max(full.start, start)
    clamped_end = min(full.end, end)
    if clamped_start > clamped_end:
        return full
    return TimeExtent(start=clamped_start, end=clamped_end)


def default_window(full: TimeExtent, months: int = 12, tz: tzinfo | None = None) -> TimeExtent:
    """``[full.start, min(full.start + months, full.end)]``.

    Month arithmetic runs on the wall clock of *tz* (the start's own zone
    when omitted).
    """
    anchor = full.start.astimezone(tz) if tz is not None else full.start
    candidate = add_months(anchor, months)
    return TimeExtent(start=full.start, end=min(candidate, full.end))


class ExtentBounds(BaseModel):
    """Map viewport rectangle in lon/lat degrees."""

    xmin: float = Field(..., description="West edge (longitude)")
    ymin: float = Field(..., description="South edge (latitude)")
    xmax: float = Field(..., description="East edge (longitude)")
    ymax: float = Field(..., description="North edge (latitude)")

    model_config = {"frozen": True}

    def contains(self, lon: float, lat: float) -> bool:
        """Inclusive on all four edges."""
        return self.xmin <= lon <= self.xmax and self.ymin <= lat <= self.ymax
