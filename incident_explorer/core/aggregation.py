"""Aggregation Engine — pure summaries over a list of incident records.

Design principles:
    1. Pure functions: accept records, return view models.
    2. No side effects, no state mutation, no I/O.
    3. Calendar operations run in an explicit display zone (``tz``).

Bucketing:
    day    → local midnight
    week   → Monday 00:00 (``weekday()`` days back from the record's day)
    month  → first of the month
    year   → January 1

The time series is sparse: buckets with no records are omitted, so
callers must not assume contiguous coverage.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Sequence

from incident_explorer.domain.enums import TimeStep
from incident_explorer.domain.extent import TimeExtent
from incident_explorer.domain.incident import IncidentRecord
from incident_explorer.foundation.calendar import add_months
from incident_explorer.models.views import (
    CategoryCount,
    HourCount,
    KpiSummary,
    PeriodDelta,
    TimeBucket,
)

DEFAULT_TOP_LIMIT = 8


# ── Buckets ──────────────────────────────────────────────────────────────────

def bucket_start(ts: datetime, step: TimeStep, tz: tzinfo = timezone.utc) -> datetime:
    """Start of the period enclosing *ts* under *step*, in *tz*."""
    local = ts.astimezone(tz)
    day = local.date()
    if step == TimeStep.WEEK:
        day = day - timedelta(days=day.weekday())
    elif step == TimeStep.MONTH:
        day = day.replace(day=1)
    elif step == TimeStep.YEAR:
        day = day.replace(month=1, day=1)
    return datetime.combine(day, time(0), tzinfo=tz)


def bucket_end(start: datetime, step: TimeStep) -> datetime:
    """*start* advanced by exactly one unit of *step* (wall-clock arithmetic)."""
    if step == TimeStep.DAY:
        return start + timedelta(days=1)
    if step == TimeStep.WEEK:
        return start + timedelta(days=7)
    if step == TimeStep.MONTH:
        return add_months(start, 1)
    return add_months(start, 12)


def time_series(
    records: Iterable[IncidentRecord],
    step: TimeStep,
    tz: tzinfo = timezone.utc,
) -> list[TimeBucket]:
    """Count records per bucket, ascending by bucket start."""
    counts: Counter[datetime] = Counter(
        bucket_start(r.timestamp, step, tz) for r in records
    )
    return [
        TimeBucket(start=start, end=bucket_end(start, step), count=counts[start])
        for start in sorted(counts)
    ]


# ── Categories ───────────────────────────────────────────────────────────────

def top_categories(
    records: Iterable[IncidentRecord],
    limit: int = DEFAULT_TOP_LIMIT,
) -> list[CategoryCount]:
    """Most frequent categories, ties broken by ascending label.

    The result depends only on the counts, never on input order.
    """
    if limit <= 0:
        return []
    counts = Counter(r.category for r in records)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [CategoryCount(name=name, count=count) for name, count in ranked[:limit]]


def category_totals(
    records: Iterable[IncidentRecord],
    categories: Sequence[str],
) -> list[CategoryCount]:
    """Count per label in *categories* order, zero counts included."""
    counts = Counter(r.category for r in records)
    return [CategoryCount(name=name, count=counts.get(name, 0)) for name in categories]


def distinct_category_count(records: Iterable[IncidentRecord]) -> int:
    return len({r.category for r in records})


# ── Hours ────────────────────────────────────────────────────────────────────

def hour_distribution(
    records: Iterable[IncidentRecord],
    tz: tzinfo = timezone.utc,
) -> list[HourCount]:
    """Always 24 entries, hour 0 through 23."""
    counts = [0] * 24
    for r in records:
        counts[r.timestamp.astimezone(tz).hour] += 1
    return [HourCount(hour=hour, count=count) for hour, count in enumerate(counts)]


# ── Period over period ───────────────────────────────────────────────────────

def period_delta(current: float, previous: float) -> PeriodDelta:
    """Absolute and percentage change; undefined when *previous* is zero."""
    if previous == 0:
        return PeriodDelta()
    diff = current - previous
    return PeriodDelta(diff=diff, pct=diff / previous * 100)


def build_kpis(
    current: Sequence[IncidentRecord],
    previous: Sequence[IncidentRecord],
    window: TimeExtent,
) -> KpiSummary:
    """Headline totals for *window* against the equal-length period before it.

    *previous* must already be filtered to ``window.previous_period()``.
    """
    total, previous_total = len(current), len(previous)
    categories = distinct_category_count(current)
    previous_categories = distinct_category_count(previous)
    return KpiSummary(
        total=total,
        previous_total=previous_total,
        total_delta=period_delta(total, previous_total),
        category_count=categories,
        previous_category_count=previous_categories,
        category_delta=period_delta(categories, previous_categories),
        time_extent=window,
        previous_time_extent=window.previous_period(),
    )
