"""Tests for query-string decoding, encoding and the write-suppressing QuerySync."""

from datetime import datetime, timezone

import pytest

from incident_explorer.domain.app_state import DEFAULT_BASEMAP
from incident_explorer.domain.enums import ExtentMode, Language, TimeStep
from incident_explorer.domain.extent import TimeExtent
from incident_explorer.store.state_store import StateStore
from incident_explorer.sync.query_sync import (
    QuerySync,
    decode_list,
    decode_state,
    encode_list,
    encode_state,
)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


_FULL = TimeExtent(start=_utc(2022, 1, 1), end=_utc(2023, 6, 1))
_DEFAULT = TimeExtent(start=_utc(2022, 1, 1), end=_utc(2023, 1, 1))


def _round_trip(store: StateStore):
    query = encode_state(store.state, store.default_window)
    return decode_state(query, _FULL)


# ── List codec ───────────────────────────────────────────────────────────────


class TestListCodec:
    def test_labels_with_delimiter_and_spaces(self) -> None:
        labels = ["Theft & Larceny", "A|B", "Café", "50% off"]
        assert decode_list(encode_list(labels)) == tuple(labels)

    def test_encoding_form(self) -> None:
        assert encode_list(["Theft & Larceny", "Assault"]) == "Theft%20%26%20Larceny|Assault"

    def test_empty(self) -> None:
        assert encode_list([]) is None
        assert decode_list("") == ()
        assert decode_list(None) == ()

    def test_empty_pieces_dropped(self) -> None:
        assert decode_list("a||b|") == ("a", "b")


# ── Decode ───────────────────────────────────────────────────────────────────


class TestDecodeState:
    def test_empty_query_gives_defaults(self) -> None:
        state = decode_state("", _FULL)
        assert state.lang == Language.EN
        assert state.basemap == DEFAULT_BASEMAP
        assert state.time_extent == _DEFAULT
        assert state.time_step == TimeStep.MONTH
        assert state.filters.categories == ()
        assert state.filters.sheets == ()
        assert state.filters.extent_mode == ExtentMode.ALL

    def test_full_query(self) -> None:
        state = decode_state(
            "?lang=es&basemap=streets&step=week&extentMode=view"
            "&timeStart=2022-03-01T00:00:00Z&timeEnd=2022-04-01T00:00:00.000Z"
            "&categories=Theft%2520%2526%2520Larceny%7CAssault&sheets=2022",
            _FULL,
        )
        assert state.lang == Language.ES
        assert state.basemap == "streets"
        assert state.time_step == TimeStep.WEEK
        assert state.filters.extent_mode == ExtentMode.VIEW
        assert state.time_extent == TimeExtent(start=_utc(2022, 3, 1), end=_utc(2022, 4, 1))
        assert state.filters.categories == ("Theft & Larceny", "Assault")
        assert state.filters.sheets == ("2022",)

    @pytest.mark.parametrize("query", ["lang=fr", "step=hour", "extentMode=everything", "lang=&step="])
    def test_invalid_enums_fall_back(self, query) -> None:
        state = decode_state(query, _FULL)
        assert state.lang == Language.EN
        assert state.time_step == TimeStep.MONTH
        assert state.filters.extent_mode == ExtentMode.ALL

    def test_window_is_clamped(self) -> None:
        state = decode_state("timeStart=2021-01-01T00:00:00Z&timeEnd=2022-06-01T00:00:00Z", _FULL)
        assert state.time_extent == TimeExtent(start=_utc(2022, 1, 1), end=_utc(2022, 6, 1))

    @pytest.mark.parametrize(
        "query",
        [
            "timeStart=2022-03-01T00:00:00Z",
            "timeEnd=2022-03-01T00:00:00Z",
            "timeStart=yesterday&timeEnd=2022-03-01T00:00:00Z",
        ],
    )
    def test_incomplete_window_uses_default(self, query) -> None:
        assert decode_state(query, _FULL).time_extent == _DEFAULT

    def test_disjoint_window_reinstates_full(self) -> None:
        state = decode_state("timeStart=2030-01-01T00:00:00Z&timeEnd=2031-01-01T00:00:00Z", _FULL)
        assert state.time_extent == _FULL

    def test_mapping_input(self) -> None:
        state = decode_state({"lang": "es", "categories": "Theft"}, _FULL)
        assert state.lang == Language.ES
        assert state.filters.categories == ("Theft",)


# ── Encode ───────────────────────────────────────────────────────────────────


class TestEncodeState:
    def test_default_state_encodes_empty(self) -> None:
        store = StateStore(_FULL)
        assert encode_state(store.state, store.default_window) == ""

    def test_non_defaults_written_in_order(self) -> None:
        store = StateStore(_FULL)
        store.set_language("es")
        store.set_time_extent(_utc(2022, 3, 1), _utc(2022, 4, 1))
        store.set_granularity("day")
        store.set_categories(["Theft & Larceny", "Assault"])
        store.set_extent_mode("view")
        assert encode_state(store.state, store.default_window) == (
            "lang=es"
            "&timeStart=2022-03-01T00%3A00%3A00Z&timeEnd=2022-04-01T00%3A00%3A00Z"
            "&step=day"
            "&categories=Theft%2520%2526%2520Larceny%7CAssault"
            "&extentMode=view"
        )

    def test_default_window_omitted_even_with_other_fields(self) -> None:
        store = StateStore(_FULL)
        store.set_sheets(["2023"])
        query = encode_state(store.state, store.default_window)
        assert query == "sheets=2023"


class TestRoundTrip:
    def test_default(self) -> None:
        store = StateStore(_FULL)
        assert _round_trip(store).same_selection(store.state)

    def test_after_many_transitions(self) -> None:
        store = StateStore(_FULL)
        store.set_language(Language.ES)
        store.set_basemap("light gray/vector")
        store.set_granularity(TimeStep.YEAR)
        store.set_time_extent(_utc(2022, 2, 3, 4, 5, 6, 789000), _utc(2023, 1, 2))
        store.set_categories(["Theft", "A|B", "Drugs & Narcotics"])
        store.set_sheets(["Sheet 1", "100%"])
        store.set_extent_mode(ExtentMode.VIEW)
        assert _round_trip(store).same_selection(store.state)

    def test_after_reset(self) -> None:
        store = StateStore(_FULL)
        store.set_categories(["Theft"])
        store.set_granularity(TimeStep.DAY)
        store.reset_filters()
        assert _round_trip(store).same_selection(store.state)

    def test_full_extent_window(self) -> None:
        store = StateStore(_FULL)
        store.set_time_extent(_utc(1990, 1, 1), _utc(2090, 1, 1))
        assert _round_trip(store).same_selection(store.state)

    def test_empty_labels_never_reach_the_link(self) -> None:
        store = StateStore(_FULL)
        store.set_categories(["", "A"])
        store.set_sheets([""])
        assert encode_state(store.state, store.default_window) == "categories=A"
        assert _round_trip(store).filters == store.state.filters

    def test_configured_default_language(self) -> None:
        state = decode_state("", _FULL, default_language=Language.ES)
        assert state.lang == Language.ES
        assert encode_state(state, _DEFAULT, default_language=Language.ES) == ""
        english = state.model_copy(update={"lang": Language.EN})
        assert encode_state(english, _DEFAULT, default_language=Language.ES) == "lang=en"


# ── QuerySync ────────────────────────────────────────────────────────────────


class TestQuerySync:
    def _attached(self) -> tuple[StateStore, list[str], QuerySync]:
        store = StateStore(_FULL)
        writes: list[str] = []
        sync = QuerySync(writes.append, store.default_window)
        sync.attach(store)
        return store, writes, sync

    def test_initial_state_written_once(self) -> None:
        _, writes, sync = self._attached()
        assert writes == [""]
        assert sync.last_written == ""

    def test_change_is_written(self) -> None:
        store, writes, _ = self._attached()
        store.set_granularity("week")
        assert writes == ["", "step=week"]

    def test_identical_encoding_suppressed(self) -> None:
        store, writes, sync = self._attached()
        store.set_categories(["Theft"])
        assert sync.on_state(store.state) is False
        assert writes == ["", "categories=Theft"]
        assert sync.write_count == 2

    def test_change_and_revert_writes_both(self) -> None:
        store, writes, _ = self._attached()
        store.set_extent_mode("view")
        store.set_extent_mode("all")
        assert writes == ["", "extentMode=view", ""]

    def test_noop_transition_writes_nothing(self) -> None:
        store, writes, _ = self._attached()
        store.set_time_extent(_DEFAULT.start, _DEFAULT.end)
        assert writes == [""]

    def test_detach(self) -> None:
        store = StateStore(_FULL)
        writes: list[str] = []
        unsubscribe = QuerySync(writes.append, store.default_window).attach(store)
        unsubscribe()
        store.set_basemap("streets")
        assert writes == [""]
