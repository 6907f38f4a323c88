"""Tests for the Filter Engine."""

from datetime import datetime, timezone

from incident_explorer.core.filtering import filter_records
from incident_explorer.domain.enums import ExtentMode
from incident_explorer.domain.extent import ExtentBounds, TimeExtent
from incident_explorer.domain.incident import FilterState, IncidentRecord


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


_counter = iter(range(1_000_000))


def _record(
    ts: datetime,
    category: str = "Theft",
    sheet: str = "2023",
    coords: tuple[float, float] = (0.0, 0.0),
    rid: str | None = None,
) -> IncidentRecord:
    """Build a canonical IncidentRecord directly."""
    return IncidentRecord(
        id=rid or f"r-{next(_counter)}",
        coordinates=coords,
        timestamp=ts,
        category=category,
        sheet=sheet,
    )


_WINDOW = TimeExtent(start=_utc(2023, 1, 1), end=_utc(2023, 1, 31))


class TestTimeWindow:
    def test_window_is_inclusive(self) -> None:
        records = [
            _record(_utc(2022, 12, 31, 23, 59, 59), rid="before"),
            _record(_utc(2023, 1, 1), rid="start"),
            _record(_utc(2023, 1, 15), rid="middle"),
            _record(_utc(2023, 1, 31), rid="end"),
            _record(_utc(2023, 1, 31, 0, 0, 1), rid="after"),
        ]
        out = filter_records(records, FilterState(), _WINDOW)
        assert [r.id for r in out] == ["start", "middle", "end"]


class TestAllowLists:
    def _records(self) -> list[IncidentRecord]:
        return [
            _record(_utc(2023, 1, 2), "Theft", "2022", rid="t22"),
            _record(_utc(2023, 1, 3), "Assault", "2023", rid="a23"),
            _record(_utc(2023, 1, 4), "Burglary", "2023", rid="b23"),
        ]

    def test_empty_allow_lists_pass_everything(self) -> None:
        out = filter_records(self._records(), FilterState(categories=[], sheets=[]), _WINDOW)
        assert len(out) == 3

    def test_category_allow_list(self) -> None:
        out = filter_records(self._records(), FilterState(categories=["Theft", "Burglary"]), _WINDOW)
        assert [r.id for r in out] == ["t22", "b23"]

    def test_sheet_allow_list(self) -> None:
        out = filter_records(self._records(), FilterState(sheets=["2023"]), _WINDOW)
        assert [r.id for r in out] == ["a23", "b23"]

    def test_both_lists_combine(self) -> None:
        filters = FilterState(categories=["Theft", "Assault"], sheets=["2023"])
        assert [r.id for r in filter_records(self._records(), filters, _WINDOW)] == ["a23"]

    def test_unknown_label_matches_nothing(self) -> None:
        assert filter_records(self._records(), FilterState(categories=["Arson"]), _WINDOW) == []


class TestSpatialExtent:
    _BOUNDS = ExtentBounds(xmin=-1.0, ymin=-1.0, xmax=1.0, ymax=1.0)

    def _records(self) -> list[IncidentRecord]:
        ts = _utc(2023, 1, 10)
        return [
            _record(ts, coords=(0.0, 0.0), rid="inside"),
            _record(ts, coords=(1.0, -1.0), rid="corner"),
            _record(ts, coords=(1.5, 0.0), rid="east"),
            _record(ts, coords=(0.0, -1.2), rid="south"),
        ]

    def test_view_mode_restricts_to_bounds(self) -> None:
        filters = FilterState(extent_mode=ExtentMode.VIEW)
        out = filter_records(self._records(), filters, _WINDOW, self._BOUNDS)
        assert [r.id for r in out] == ["inside", "corner"]

    def test_view_mode_without_bounds_is_unrestricted(self) -> None:
        filters = FilterState(extent_mode=ExtentMode.VIEW)
        assert len(filter_records(self._records(), filters, _WINDOW, None)) == 4

    def test_all_mode_ignores_bounds(self) -> None:
        filters = FilterState(extent_mode=ExtentMode.ALL)
        assert len(filter_records(self._records(), filters, _WINDOW, self._BOUNDS)) == 4


class TestPurity:
    def test_order_preserved_and_idempotent(self) -> None:
        records = [_record(_utc(2023, 1, d), rid=f"d{d}") for d in (20, 3, 11, 7)]
        filters = FilterState(categories=["Theft"])
        first = filter_records(records, filters, _WINDOW)
        second = filter_records(records, filters, _WINDOW)
        assert first == second
        assert [r.id for r in first] == ["d20", "d3", "d11", "d7"]

    def test_returns_new_list(self) -> None:
        records = [_record(_utc(2023, 1, 2))]
        out = filter_records(records, FilterState(), _WINDOW)
        out.clear()
        assert len(records) == 1
