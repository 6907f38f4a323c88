"""StateStore — owner of the one mutable AppState.

Design notes:
    - Not a singleton.  Each session constructs its own store around the
      dataset's global time extent and passes it explicitly to whoever
      needs it.
    - Every mutation goes through a named transition.  A transition builds
      the next frozen AppState from the previous one; callers never see a
      partial update.
    - Transitions are total.  Out-of-range windows are clamped, never
      rejected.
    - A transition whose result equals the current selection is a no-op:
      no version bump, no listener call.
    - Listeners run synchronously, in subscription order, after the new
      state is in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Iterable

from incident_explorer.domain.app_state import DEFAULT_BASEMAP, AppState
from incident_explorer.domain.enums import ExtentMode, Language, TimeStep
from incident_explorer.domain.extent import TimeExtent, clamp_window, default_window
from incident_explorer.domain.incident import FilterState

logger = logging.getLogger(__name__)

StateListener = Callable[[AppState], None]


class StateStore:
    """Versioned holder of the application state.

    Args:
        full_extent: The dataset's global time extent.  The current window
            is always kept inside it.
        initial: Starting state (typically decoded from a query string).
            Its window is clamped into *full_extent*.  Defaults are used
            when omitted.
        default_basemap: Basemap used for a fresh state.
        default_language: Language used for a fresh state.
        default_window_months: Length of the default window.
        tz: Zone whose calendar the default window's month arithmetic uses.
    """

    def __init__(
        self,
        full_extent: TimeExtent,
        initial: AppState | None = None,
        default_basemap: str = DEFAULT_BASEMAP,
        default_window_months: int = 12,
        tz: tzinfo = timezone.utc,
        default_language: Language = Language.EN,
    ) -> None:
        self._full_extent = full_extent
        self._window_months = default_window_months
        self._tz = tz
        if initial is None:
            initial = AppState(
                lang=default_language,
                basemap=default_basemap,
                time_extent=self.default_window,
            )
        else:
            clamped = initial.time_extent.clamp_to(full_extent)
            if clamped != initial.time_extent:
                initial = initial.model_copy(update={"time_extent": clamped})
        self._state = initial
        self._listeners: list[StateListener] = []

    # ── Read access ──────────────────────────────────────────────────────

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def version(self) -> int:
        return self._state.version

    @property
    def full_extent(self) -> TimeExtent:
        return self._full_extent

    @property
    def default_window(self) -> TimeExtent:
        return default_window(self._full_extent, self._window_months, self._tz)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with the new state after every effective transition.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── Transitions ──────────────────────────────────────────────────────

    def set_language(self, lang: Language | str) -> AppState:
        return self._commit("set_language", lang=Language(lang))

    def set_basemap(self, basemap: str) -> AppState:
        return self._commit("set_basemap", basemap=basemap)

    def set_time_extent(self, start: datetime, end: datetime) -> AppState:
        """Clamp ``[start, end]`` into the global extent and apply it.

        A request that misses the global extent entirely reinstates the
        full extent.  An unchanged result is a no-op.
        """
        return self._commit("set_time_extent", time_extent=clamp_window(start, end, self._full_extent))

    def set_categories(self, categories: Iterable[str]) -> AppState:
        """Replace the category allow-list.  Empty labels are dropped."""
        return self._commit_filters("set_categories", categories=_labels(categories))

    def set_sheets(self, sheets: Iterable[str]) -> AppState:
        """Replace the sheet allow-list.  Empty labels are dropped."""
        return self._commit_filters("set_sheets", sheets=_labels(sheets))

    def set_extent_mode(self, mode: ExtentMode | str) -> AppState:
        return self._commit_filters("set_extent_mode", extent_mode=ExtentMode(mode))

    def set_granularity(self, step: TimeStep | str) -> AppState:
        """Replace the granularity.

        Switching to ``month`` also resets the window to the default
        twelve-month window, even when the granularity already was
        ``month``.
        """
        step = TimeStep(step)
        if step == TimeStep.MONTH:
            return self._commit("set_granularity", time_step=step, time_extent=self.default_window)
        return self._commit("set_granularity", time_step=step)

    def reset_filters(self) -> AppState:
        """Empty allow-lists, extent mode ``all``, ``month`` steps, default window."""
        return self._commit(
            "reset_filters",
            filters=FilterState(),
            time_step=TimeStep.MONTH,
            time_extent=self.default_window,
        )

    # ── Internals ────────────────────────────────────────────────────────

    def _commit_filters(self, name: str, **changes: Any) -> AppState:
        filters = self._state.filters.model_copy(update=changes)
        return self._commit(name, filters=filters)

    def _commit(self, name: str, **changes: Any) -> AppState:
        previous = self._state
        candidate = previous.model_copy(update=changes)
        if candidate.same_selection(previous):
            logger.debug("%s: no change (v=%d)", name, previous.version)
            return previous

        self._state = candidate.model_copy(update={"version": previous.version + 1})
        logger.debug("%s → v=%d", name, self._state.version)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state


def _labels(values: Iterable[str]) -> tuple[str, ...]:
    # An empty label cannot be written to a link
    return tuple(v for v in values if v)
