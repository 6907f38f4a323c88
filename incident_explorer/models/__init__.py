from incident_explorer.models.views import (
    CategoryCount,
    DerivedViews,
    HourCount,
    KpiSummary,
    PeriodDelta,
    TimeBucket,
)

__all__ = [
    "CategoryCount",
    "DerivedViews",
    "HourCount",
    "KpiSummary",
    "PeriodDelta",
    "TimeBucket",
]
