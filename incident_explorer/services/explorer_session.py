"""ExplorerSession — one analyst's view onto a loaded Dataset.

Wires the pieces together for a single browser session:

    query string ──decode once──▶ StateStore ──notify──▶ QuerySync ──▶ writer
                                      │
                                      ▼
              Dataset ─▶ filter_records ─▶ aggregation ─▶ DerivedViews

Derived views are memoised on (state version, effective viewport, top
limit), so asking twice for the same inputs returns the same object.
The session never releases the dataset; its owner does.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Mapping

from incident_explorer.config import Settings, settings as default_settings
from incident_explorer.core.aggregation import (
    build_kpis,
    category_totals,
    hour_distribution,
    time_series,
    top_categories,
)
from incident_explorer.core.filtering import filter_records
from incident_explorer.domain.app_state import AppState
from incident_explorer.domain.dataset import Dataset
from incident_explorer.domain.enums import ExtentMode
from incident_explorer.domain.extent import ExtentBounds
from incident_explorer.domain.incident import IncidentRecord
from incident_explorer.foundation.calendar import resolve_zone
from incident_explorer.models.views import CategoryCount, DerivedViews
from incident_explorer.store.state_store import StateStore
from incident_explorer.sync.query_sync import QuerySync, decode_state

logger = logging.getLogger(__name__)


class ExplorerSession:
    """State store, query sync and derived views over one dataset.

    Args:
        dataset: The loaded, read-only dataset.
        query: The query string (or mapping) the session starts from.
        writer: Receives every address-bar write.  Defaults to a no-op.
        cfg: Settings supplying defaults and the display zone.
    """

    def __init__(
        self,
        dataset: Dataset,
        query: str | Mapping[str, str] = "",
        writer: Callable[[str], None] | None = None,
        cfg: Settings | None = None,
    ) -> None:
        cfg = cfg or default_settings
        self._dataset = dataset
        self._tz = resolve_zone(cfg.display_timezone)
        self._top_limit = cfg.top_categories_limit

        initial = decode_state(
            query,
            dataset.extent,
            default_basemap=cfg.default_basemap,
            default_window_months=cfg.default_window_months,
            tz=self._tz,
            default_language=cfg.default_language,
        )
        self.store = StateStore(
            dataset.extent,
            initial,
            default_basemap=cfg.default_basemap,
            default_window_months=cfg.default_window_months,
            tz=self._tz,
            default_language=cfg.default_language,
        )
        self.sync = QuerySync(
            writer or (lambda query: None),
            self.store.default_window,
            cfg.default_basemap,
            cfg.default_language,
        )
        self._unsubscribe = self.sync.attach(self.store)

        self._view_bounds: ExtentBounds | None = None
        self._memo_key: tuple | None = None
        self._memo: DerivedViews | None = None

    # ── Read access ──────────────────────────────────────────────────────

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def state(self) -> AppState:
        return self.store.state

    @property
    def view_bounds(self) -> ExtentBounds | None:
        return self._view_bounds

    @property
    def location_query(self) -> str:
        """The query string most recently written for this session."""
        return self.sync.last_written or ""

    # ── Inbound from the renderer ────────────────────────────────────────

    def set_view_bounds(self, bounds: ExtentBounds | None) -> None:
        """Record the current map viewport; used only in ``view`` mode."""
        self._view_bounds = bounds

    def toggle_category(self, name: str) -> AppState:
        """Add *name* to the category allow-list, or remove it if present."""
        if not name:
            return self.state
        current = self.state.filters.categories
        if name in current:
            return self.store.set_categories(c for c in current if c != name)
        return self.store.set_categories((*current, name))

    def select_bucket(self, start: datetime, end: datetime) -> AppState:
        """Narrow the window to a clicked time-series bucket."""
        return self.store.set_time_extent(start, end)

    # ── Derived views ────────────────────────────────────────────────────

    def _effective_bounds(self) -> ExtentBounds | None:
        if self.state.filters.extent_mode == ExtentMode.VIEW:
            return self._view_bounds
        return None

    def filtered_records(self) -> list[IncidentRecord]:
        """Records admitted by the current state and, in view mode, the viewport."""
        state = self.state
        return filter_records(
            self._dataset.records,
            state.filters,
            state.time_extent,
            self._effective_bounds(),
        )

    def category_totals(self) -> list[CategoryCount]:
        """Whole-dataset count per category, for the filter panel."""
        return category_totals(self._dataset.records, self._dataset.categories)

    def views(self, top_limit: int | None = None) -> DerivedViews:
        """Recompute (or reuse) every derived view for the current state."""
        limit = self._top_limit if top_limit is None else top_limit
        state = self.state
        bounds = self._effective_bounds()
        key = (id(self._dataset), state.version, bounds, limit)
        if key == self._memo_key and self._memo is not None:
            return self._memo

        records = self.filtered_records()
        previous = filter_records(
            self._dataset.records,
            state.filters,
            state.time_extent.previous_period(),
            bounds,
        )
        views = DerivedViews(
            state_version=state.version,
            records=records,
            time_series=time_series(records, state.time_step, self._tz),
            top_categories=top_categories(records, limit),
            hour_distribution=hour_distribution(records, self._tz),
            kpis=build_kpis(records, previous, state.time_extent),
        )
        logger.debug(
            "Derived views v=%d: %d/%d records",
            state.version,
            len(records),
            len(self._dataset.records),
        )
        self._memo_key, self._memo = key, views
        return views

    def close(self) -> None:
        """Stop following state changes."""
        self._unsubscribe()
