"""Query Sync — AppState ⇄ URL query string.

One-directional after start-up:
    1. decode_state() runs once, when a session is created, turning the
       query string the user arrived with into the initial AppState.
    2. From then on QuerySync only encodes.  Every state notification is
       encoded and handed to the writer, unless it is identical to the
       last string written.  A self-authored write is never decoded back.

Encoding:
    - list fields (``categories``, ``sheets``): each label percent-escaped
      with the encodeURIComponent alphabet, joined with ``|``
    - timestamps: ISO-8601 UTC with a ``Z`` suffix
    - any field equal to its default is omitted to keep links short
"""

from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from typing import Callable, Iterable, Mapping
from urllib.parse import parse_qs, quote, unquote, urlencode

from incident_explorer.domain.app_state import DEFAULT_BASEMAP, AppState
from incident_explorer.domain.enums import ExtentMode, Language, TimeStep
from incident_explorer.domain.extent import TimeExtent, clamp_window, default_window
from incident_explorer.domain.incident import FilterState
from incident_explorer.foundation.calendar import parse_iso, to_iso_utc

logger = logging.getLogger(__name__)

LIST_DELIMITER = "|"
# encodeURIComponent leaves these unescaped besides alphanumerics and "-_.~"
_COMPONENT_SAFE = "!*'()"

QueryWriter = Callable[[str], None]


# ── Field codecs ─────────────────────────────────────────────────────────────

def encode_list(values: Iterable[str]) -> str | None:
    """``["A B", "C|D"]`` → ``"A%20B|C%7CD"``; None for an empty list."""
    values = list(values)
    if not values:
        return None
    return LIST_DELIMITER.join(quote(v, safe=_COMPONENT_SAFE) for v in values)


def decode_list(value: str | None) -> tuple[str, ...]:
    """Inverse of encode_list.  Empty pieces are dropped."""
    if not value:
        return ()
    return tuple(piece for piece in (unquote(p) for p in value.split(LIST_DELIMITER)) if piece)


def _enum_or_default(enum_cls, value: str | None, default):
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        logger.debug("Ignoring invalid %s value %r", enum_cls.__name__, value)
        return default


def _first_values(query: str | Mapping[str, str]) -> dict[str, str]:
    if isinstance(query, Mapping):
        return {k: v for k, v in query.items() if isinstance(v, str)}
    parsed = parse_qs(query.lstrip("?"), keep_blank_values=True)
    return {k: v[0] for k, v in parsed.items() if v}


# ── Decode / encode ──────────────────────────────────────────────────────────

def decode_state(
    query: str | Mapping[str, str],
    full_extent: TimeExtent,
    default_basemap: str = DEFAULT_BASEMAP,
    default_window_months: int = 12,
    tz: tzinfo = timezone.utc,
    default_language: Language = Language.EN,
) -> AppState:
    """Build the initial AppState from a query string.

    Nothing here raises: unknown enum values, unparsable timestamps and
    malformed lists all fall back to their defaults.  The window is used
    only when both ends parse, and is then clamped into *full_extent*.
    """
    params = _first_values(query)

    start = parse_iso(params["timeStart"], tz) if params.get("timeStart") else None
    end = parse_iso(params["timeEnd"], tz) if params.get("timeEnd") else None
    if start is not None and end is not None:
        window = clamp_window(start, end, full_extent)
    else:
        window = default_window(full_extent, default_window_months, tz)

    return AppState(
        lang=_enum_or_default(Language, params.get("lang"), default_language),
        basemap=params.get("basemap") or default_basemap,
        time_extent=window,
        time_step=_enum_or_default(TimeStep, params.get("step"), TimeStep.MONTH),
        filters=FilterState(
            categories=decode_list(params.get("categories")),
            sheets=decode_list(params.get("sheets")),
            extent_mode=_enum_or_default(ExtentMode, params.get("extentMode"), ExtentMode.ALL),
        ),
    )


def encode_state(
    state: AppState,
    default_time_extent: TimeExtent,
    default_basemap: str = DEFAULT_BASEMAP,
    default_language: Language = Language.EN,
) -> str:
    """Serialise *state*, omitting every field that equals its default."""
    params: list[tuple[str, str]] = []
    if state.lang != default_language:
        params.append(("lang", state.lang.value))
    if state.time_extent != default_time_extent:
        params.append(("timeStart", to_iso_utc(state.time_extent.start)))
        params.append(("timeEnd", to_iso_utc(state.time_extent.end)))
    if state.basemap != default_basemap:
        params.append(("basemap", state.basemap))
    if state.time_step != TimeStep.MONTH:
        params.append(("step", state.time_step.value))
    categories = encode_list(state.filters.categories)
    if categories:
        params.append(("categories", categories))
    sheets = encode_list(state.filters.sheets)
    if sheets:
        params.append(("sheets", sheets))
    if state.filters.extent_mode != ExtentMode.ALL:
        params.append(("extentMode", state.filters.extent_mode.value))
    return urlencode(params)


# ── Writer ───────────────────────────────────────────────────────────────────

class QuerySync:
    """Encodes state changes and writes them to the address bar.

    Args:
        writer: Replaces the current location's query without navigating
            or scrolling.  Called only when the encoding changed.
        default_time_extent: The window that is omitted from links.
        default_basemap: The basemap that is omitted from links.
        default_language: The language that is omitted from links.

    ``last_written`` starts as None, so the first encoding is always
    written; that normalises whatever query the session started from.
    """

    def __init__(
        self,
        writer: QueryWriter,
        default_time_extent: TimeExtent,
        default_basemap: str = DEFAULT_BASEMAP,
        default_language: Language = Language.EN,
    ) -> None:
        self._writer = writer
        self._default_time_extent = default_time_extent
        self._default_basemap = default_basemap
        self._default_language = default_language
        self.last_written: str | None = None
        self.write_count = 0

    def attach(self, store) -> Callable[[], None]:
        """Write the store's current state, then follow its transitions.

        Returns the unsubscribe function.
        """
        self.on_state(store.state)
        return store.subscribe(self.on_state)

    def on_state(self, state: AppState) -> bool:
        """Encode *state*; write it if it differs from the last write."""
        query = encode_state(
            state,
            self._default_time_extent,
            self._default_basemap,
            self._default_language,
        )
        if query == self.last_written:
            return False
        self.last_written = query
        self.write_count += 1
        logger.debug("Writing query (v=%d): %s", state.version, query or "<empty>")
        self._writer(query)
        return True
