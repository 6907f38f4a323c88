"""Error taxonomy for loading and normalising incident data.

Only fetch and normalisation can fail.  Filter, time-window and query
edge cases are corrected to a safe value instead of raising.
"""

from __future__ import annotations


class IncidentExplorerError(Exception):
    """Base class for all incident-explorer errors."""


class FetchFailure(IncidentExplorerError):
    """Raised when the raw feature collection could not be retrieved."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        self.url = url
        self.reason = reason
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"Failed to fetch data ({status_code}) from {url}: {reason}")
        else:
            super().__init__(f"Failed to fetch data from {url}: {reason}")


class EmptyDatasetError(IncidentExplorerError):
    """Raised when the raw collection contains no elements at all."""


class NoValidFeaturesError(IncidentExplorerError):
    """Raised when no element survives geometry and timestamp validation."""


class InvalidStateTransition(IncidentExplorerError):
    """Reserved.  State transitions are total and never raise this."""
