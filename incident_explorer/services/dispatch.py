"""Applies a validated SessionAction to an ExplorerSession."""

from __future__ import annotations

from incident_explorer.models.actions import (
    ResetFilters,
    SessionAction,
    SetBasemap,
    SetCategories,
    SetExtentMode,
    SetGranularity,
    SetLanguage,
    SetSheets,
    SetTimeExtent,
    SetViewBounds,
    ToggleCategory,
)
from incident_explorer.services.explorer_session import ExplorerSession


def apply_action(session: ExplorerSession, action: SessionAction) -> None:
    store = session.store
    if isinstance(action, SetLanguage):
        store.set_language(action.lang)
    elif isinstance(action, SetBasemap):
        store.set_basemap(action.basemap)
    elif isinstance(action, SetTimeExtent):
        store.set_time_extent(action.start, action.end)
    elif isinstance(action, SetCategories):
        store.set_categories(action.categories)
    elif isinstance(action, SetSheets):
        store.set_sheets(action.sheets)
    elif isinstance(action, ToggleCategory):
        session.toggle_category(action.name)
    elif isinstance(action, SetExtentMode):
        store.set_extent_mode(action.mode)
    elif isinstance(action, SetGranularity):
        store.set_granularity(action.step)
    elif isinstance(action, ResetFilters):
        store.reset_filters()
    elif isinstance(action, SetViewBounds):
        session.set_view_bounds(action.bounds)
