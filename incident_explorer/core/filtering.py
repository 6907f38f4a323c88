"""Filter Engine — which records the current selection admits.

Pure function, no side effects, deterministic.  Input order is preserved
and records are never mutated.
"""

from __future__ import annotations

from typing import Iterable

from incident_explorer.domain.enums import ExtentMode
from incident_explorer.domain.extent import ExtentBounds, TimeExtent
from incident_explorer.domain.incident import FilterState, IncidentRecord


def record_passes(
    record: IncidentRecord,
    filters: FilterState,
    window: TimeExtent,
    view_bounds: ExtentBounds | None = None,
) -> bool:
    if not window.contains(record.timestamp):
        return False
    if not filters.allows_category(record.category):
        return False
    if not filters.allows_sheet(record.sheet):
        return False
    if filters.extent_mode == ExtentMode.VIEW and view_bounds is not None:
        return view_bounds.contains(record.longitude, record.latitude)
    return True


def filter_records(
    records: Iterable[IncidentRecord],
    filters: FilterState,
    window: TimeExtent,
    view_bounds: ExtentBounds | None = None,
) -> list[IncidentRecord]:
    """Return the records admitted by *filters*, *window* and, in view mode, *view_bounds*.

    The viewport only restricts when ``filters.extent_mode`` is ``view`` and
    bounds are supplied; otherwise it is ignored.
    """
    return [r for r in records if record_passes(r, filters, window, view_bounds)]
