"""FeatureNormalizer — raw point-feature collection → canonical Dataset.

Rules:
    1. Only Point geometry with at least two numeric coordinates is kept.
    2. The timestamp is the first candidate field that parses to a point
       in time; elements without one are dropped.
    3. The category is the first non-empty candidate string, else "Unknown".
    4. The sheet comes from one designated field, else "Unknown".
    5. The id is the element's own id, else one derived from its position.

Malformed elements are tolerated by omission, never by failure.  The
whole collection fails only when it is empty or nothing survives.
The raw payload is never mutated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Mapping, Sequence

from incident_explorer.config import Settings, settings as default_settings
from incident_explorer.domain.dataset import Dataset
from incident_explorer.domain.errors import EmptyDatasetError, NoValidFeaturesError
from incident_explorer.domain.incident import UNKNOWN_LABEL, IncidentRecord
from incident_explorer.foundation.calendar import ensure_aware, parse_iso, resolve_zone, to_iso_utc
from incident_explorer.foundation.identifiers import synthetic_feature_id
from incident_explorer.store.documents import DocumentRegistry

logger = logging.getLogger(__name__)

# Spreadsheet exports that are not ISO-8601
_EXTRA_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y",
)


# ── Field parsing ────────────────────────────────────────────────────────────

def parse_timestamp(raw: Any, tz: tzinfo = timezone.utc) -> datetime | None:
    """Parse one property value into an aware datetime, or None.

    Numbers are epoch milliseconds.  The string "nat" (any case) is an
    absent value, not an error.  Falsy values are absent.  Values without
    an offset are wall-clock times in *tz*.
    """
    if not raw or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return ensure_aware(raw, tz)
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(raw, str):
        text = raw.strip()
        if not text or text.lower() == "nat":
            return None
        parsed = parse_iso(text, tz)
        if parsed is not None:
            return parsed
        for fmt in _EXTRA_FORMATS:
            try:
                return datetime.strptime(text, fmt).replace(tzinfo=tz)
            except ValueError:
                continue
    return None


def parse_point(geometry: Any) -> tuple[float, float] | None:
    """Return (lon, lat) for a usable Point geometry, else None."""
    if not isinstance(geometry, Mapping) or geometry.get("type") != "Point":
        return None
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    lon, lat = coords[0], coords[1]
    for value in (lon, lat):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if not math.isfinite(value):
            return None
    return float(lon), float(lat)


def resolve_timestamp(
    props: Mapping[str, Any],
    fields: Sequence[str],
    tz: tzinfo = timezone.utc,
) -> datetime | None:
    for field in fields:
        parsed = parse_timestamp(props.get(field), tz)
        if parsed is not None:
            return parsed
    return None


def resolve_category(props: Mapping[str, Any], fields: Sequence[str]) -> str:
    for field in fields:
        value = props.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return UNKNOWN_LABEL


def resolve_sheet(props: Mapping[str, Any], field: str) -> str:
    value = props.get(field)
    return str(value) if value else UNKNOWN_LABEL


# ── Normalizer ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldResolution:
    """Which property names feed the resolved timestamp, category and sheet.

    The first entry of each candidate list is the primary field; it is
    also the name the resolved value is written back under.
    """

    timestamp_fields: tuple[str, ...]
    category_fields: tuple[str, ...]
    sheet_field: str

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> FieldResolution:
        cfg = cfg or default_settings
        return cls(
            timestamp_fields=tuple(cfg.timestamp_candidates),
            category_fields=tuple(cfg.category_candidates),
            sheet_field=cfg.sheet_field,
        )


class NormalizationStats:
    """Per-run counters for observability."""

    __slots__ = ("total", "kept", "dropped_geometry", "dropped_timestamp")

    def __init__(self) -> None:
        self.total = 0
        self.kept = 0
        self.dropped_geometry = 0
        self.dropped_timestamp = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "kept": self.kept,
            "dropped_geometry": self.dropped_geometry,
            "dropped_timestamp": self.dropped_timestamp,
        }


class FeatureNormalizer:
    """Builds a Dataset from a raw feature collection.

    Source timestamps without an offset are read in *tz* (the configured
    display zone by default), the zone the views bucket in.

    The re-serialised document is published to *registry* only after the
    collection has been validated, so a failed run leaves nothing to
    release.  The caller owns the returned dataset's document handle.
    """

    def __init__(
        self,
        registry: DocumentRegistry,
        resolution: FieldResolution | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._registry = registry
        self._resolution = resolution or FieldResolution.from_settings()
        self._tz = tz or resolve_zone(default_settings.display_timezone)
        self.last_stats = NormalizationStats()

    def normalize(self, raw: Mapping[str, Any] | Sequence[Any]) -> Dataset:
        """Normalise *raw* into a Dataset.

        Raises:
            EmptyDatasetError: If the collection has no elements.
            NoValidFeaturesError: If every element is dropped.
        """
        features = _raw_features(raw)
        if not features:
            raise EmptyDatasetError("Dataset is empty")

        res = self._resolution
        stats = NormalizationStats()
        stats.total = len(features)
        records: list[IncidentRecord] = []
        out_features: list[dict[str, Any]] = []

        for index, feature in enumerate(features):
            if not isinstance(feature, Mapping):
                stats.dropped_geometry += 1
                continue
            coordinates = parse_point(feature.get("geometry"))
            if coordinates is None:
                stats.dropped_geometry += 1
                continue
            props = feature.get("properties")
            props = props if isinstance(props, Mapping) else {}
            timestamp = resolve_timestamp(props, res.timestamp_fields, self._tz)
            if timestamp is None:
                stats.dropped_timestamp += 1
                continue

            category = resolve_category(props, res.category_fields)
            sheet = resolve_sheet(props, res.sheet_field)
            raw_id = feature.get("id")
            record_id = str(raw_id) if raw_id else synthetic_feature_id(index)

            enriched = {
                **props,
                res.timestamp_fields[0]: to_iso_utc(timestamp),
                res.category_fields[0]: category,
                res.sheet_field: sheet,
            }
            records.append(IncidentRecord(
                id=record_id,
                coordinates=coordinates,
                properties=enriched,
                timestamp=timestamp,
                category=category,
                sheet=sheet,
            ))
            out_features.append({
                **feature,
                "id": record_id,
                "geometry": {"type": "Point", "coordinates": list(coordinates)},
                "properties": enriched,
            })

        stats.kept = len(records)
        self.last_stats = stats
        if not records:
            logger.error("No valid features among %d raw elements: %s", stats.total, stats.to_dict())
            raise NoValidFeaturesError("No features with valid timestamp and coordinates")

        envelope = dict(raw) if isinstance(raw, Mapping) else {"type": "FeatureCollection"}
        envelope["features"] = out_features
        handle = self._registry.publish(envelope)
        try:
            dataset = Dataset(records, handle)
        except Exception:
            handle.release()
            raise
        logger.info(
            "Normalised %d/%d features (dropped: %d geometry, %d timestamp)",
            stats.kept,
            stats.total,
            stats.dropped_geometry,
            stats.dropped_timestamp,
        )
        return dataset


def _raw_features(raw: Mapping[str, Any] | Sequence[Any]) -> list[Any]:
    if isinstance(raw, Mapping):
        features = raw.get("features")
    else:
        features = raw
    if not isinstance(features, (list, tuple)):
        return []
    return list(features)
