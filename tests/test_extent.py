"""Tests for time extents, clamping and calendar-month arithmetic."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from incident_explorer.domain.extent import ExtentBounds, TimeExtent, clamp_window, default_window
from incident_explorer.foundation.calendar import add_months, to_iso_utc


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _extent(start: datetime, end: datetime) -> TimeExtent:
    return TimeExtent(start=start, end=end)


_FULL = _extent(_utc(2022, 1, 1), _utc(2023, 6, 1))


class TestTimeExtent:
    def test_inverted_extent_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _extent(_utc(2023, 1, 2), _utc(2023, 1, 1))

    def test_zero_length_extent_allowed(self) -> None:
        ext = _extent(_utc(2023, 1, 1), _utc(2023, 1, 1))
        assert ext.duration.total_seconds() == 0

    def test_naive_datetimes_get_utc(self) -> None:
        ext = TimeExtent(start=datetime(2023, 1, 1), end=datetime(2023, 2, 1))
        assert ext.start == _utc(2023, 1, 1)

    def test_contains_is_inclusive(self) -> None:
        ext = _extent(_utc(2023, 1, 1), _utc(2023, 1, 31))
        assert ext.contains(_utc(2023, 1, 1))
        assert ext.contains(_utc(2023, 1, 31))
        assert not ext.contains(_utc(2023, 1, 31, 0, 0, 1))

    def test_previous_period(self) -> None:
        ext = _extent(_utc(2023, 3, 1), _utc(2023, 3, 11))
        prev = ext.previous_period()
        assert prev.start == _utc(2023, 2, 19)
        assert prev.end == _utc(2023, 3, 1)

    def test_is_immutable(self) -> None:
        with pytest.raises(ValidationError):
            _FULL.start = _utc(2020, 1, 1)


class TestClamp:
    def test_clamp_scenario(self) -> None:
        clamped = clamp_window(_utc(2021, 1, 1), _utc(2022, 6, 1), _FULL)
        assert clamped == _extent(_utc(2022, 1, 1), _utc(2022, 6, 1))

    def test_inside_request_unchanged(self) -> None:
        clamped = clamp_window(_utc(2022, 3, 1), _utc(2022, 4, 1), _FULL)
        assert clamped == _extent(_utc(2022, 3, 1), _utc(2022, 4, 1))

    def test_disjoint_request_reinstates_full(self) -> None:
        assert clamp_window(_utc(2024, 1, 1), _utc(2024, 6, 1), _FULL) == _FULL

    def test_inverted_request_reinstates_full(self) -> None:
        assert clamp_window(_utc(2022, 9, 1), _utc(2022, 3, 1), _FULL) == _FULL

    def test_clamp_to_method(self) -> None:
        ext = _extent(_utc(2020, 1, 1), _utc(2030, 1, 1))
        assert ext.clamp_to(_FULL) == _FULL

    @pytest.mark.parametrize(
        "start,end",
        [
            (_utc(2000, 1, 1), _utc(2001, 1, 1)),
            (_utc(2021, 6, 1), _utc(2022, 2, 1)),
            (_utc(2022, 5, 5), _utc(2022, 5, 6)),
            (_utc(2023, 5, 1), _utc(2030, 1, 1)),
            (_utc(2030, 1, 1), _utc(2000, 1, 1)),
        ],
    )
    def test_result_always_inside_full(self, start, end) -> None:
        clamped = clamp_window(start, end, _FULL)
        assert _FULL.start <= clamped.start <= clamped.end <= _FULL.end


class TestCalendar:
    def test_add_months_keeps_day(self) -> None:
        assert add_months(_utc(2023, 3, 15, 8, 30), 12) == _utc(2024, 3, 15, 8, 30)

    def test_add_months_clamps_short_month(self) -> None:
        assert add_months(_utc(2023, 1, 31), 1) == _utc(2023, 2, 28)
        assert add_months(_utc(2024, 1, 31), 1) == _utc(2024, 2, 29)

    def test_add_months_backwards_across_year(self) -> None:
        assert add_months(_utc(2023, 1, 15), -1) == _utc(2022, 12, 15)

    def test_to_iso_utc(self) -> None:
        assert to_iso_utc(_utc(2023, 1, 1, 5)) == "2023-01-01T05:00:00Z"


class TestDefaultWindow:
    def test_twelve_months_from_start(self) -> None:
        assert default_window(_FULL) == _extent(_utc(2022, 1, 1), _utc(2023, 1, 1))

    def test_capped_at_full_end(self) -> None:
        short = _extent(_utc(2022, 1, 1), _utc(2022, 5, 1))
        assert default_window(short) == short

    def test_custom_length(self) -> None:
        assert default_window(_FULL, months=3).end == _utc(2022, 4, 1)


class TestExtentBounds:
    def test_edges_are_inclusive(self) -> None:
        bounds = ExtentBounds(xmin=-1, ymin=-2, xmax=1, ymax=2)
        assert bounds.contains(-1, -2)
        assert bounds.contains(1, 2)
        assert not bounds.contains(1.0001, 0)
        assert not bounds.contains(0, -2.0001)
