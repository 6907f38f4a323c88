"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from incident_explorer.domain.enums import Language


class Settings(BaseSettings):
    app_name: str = "incident-explorer"
    debug: bool = False
    log_level: str = "INFO"

    # Raw data source
    data_url: str = "http://localhost:3000/data/ALL_SHEETS.geojson"
    fetch_timeout_seconds: float = 30.0

    # Field resolution (primary field first, fallbacks tried in order)
    timestamp_field: str = "timestamp"
    fallback_timestamp_fields: list[str] = [
        "Reported Date & Time",
        "Occurred From Date & Time",
        "Occurred Incident Date & Time",
        "Offense Start Date & Time",
        "Case Status Date & Time",
    ]
    category_field: str = "offense_type"
    fallback_category_fields: list[str] = [
        "Case Type",
        "Occurred Incident Code",
        "Offense",
        "NIBRS Code Name",
        "Primary Offense",
    ]
    sheet_field: str = "_sheet"

    # State defaults
    default_basemap: str = "dark-gray-vector"
    default_language: Language = Language.EN
    default_window_months: int = 12
    display_timezone: str = "UTC"

    # Derived views
    top_categories_limit: int = 8

    # Rendering documents are served under this prefix
    document_url_prefix: str = "/api/documents"

    model_config = {"env_prefix": "INCIDENT_"}

    @property
    def timestamp_candidates(self) -> list[str]:
        return [self.timestamp_field, *self.fallback_timestamp_fields]

    @property
    def category_candidates(self) -> list[str]:
        return [self.category_field, *self.fallback_category_fields]


settings = Settings()
