"""Controlled enumerations for the incident-explorer domain.

Every categorical field of the application state references an enum
defined here.  Query-string values are validated against these.
"""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Interface languages the rendering layer ships string tables for."""

    EN = "en"
    ES = "es"


class TimeStep(str, Enum):
    """Granularity of the time-bucketed series."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ExtentMode(str, Enum):
    """Whether the current map viewport restricts the filtered records."""

    ALL = "all"
    VIEW = "view"
