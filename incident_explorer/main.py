"""incident-explorer — normalisation, filtering, aggregation and state sync.

This is the application entry point.  It wires the DocumentRegistry,
FeatureNormalizer, DatasetHolder and HTTP / WebSocket endpoints together.
The dataset is fetched once at start-up and released at shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI

from incident_explorer.api.dataset import create_dataset_router
from incident_explorer.api.views import create_views_router
from incident_explorer.api.ws_explorer import create_explorer_router
from incident_explorer.config import settings
from incident_explorer.domain.errors import IncidentExplorerError
from incident_explorer.foundation.calendar import resolve_zone
from incident_explorer.ingest.fetcher import fetch_feature_collection
from incident_explorer.ingest.normalizer import FeatureNormalizer, FieldResolution
from incident_explorer.services.dataset_holder import DatasetHolder
from incident_explorer.store.documents import DocumentRegistry

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# ── Data ─────────────────────────────────────────────────────────────────────

registry = DocumentRegistry(settings.document_url_prefix)
normalizer = FeatureNormalizer(
    registry,
    FieldResolution.from_settings(settings),
    tz=resolve_zone(settings.display_timezone),
)


async def _load_raw() -> Any:
    return await fetch_feature_collection(settings.data_url, timeout=settings.fetch_timeout_seconds)


holder = DatasetHolder(_load_raw, normalizer)

# ── App ──────────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        await holder.load()
    except IncidentExplorerError as exc:
        # Terminal for this process; endpoints report it as 503.
        logger.error("Initial dataset load failed: %s", exc)
    yield
    await holder.close()


app = FastAPI(
    title=settings.app_name,
    description="Incident normalisation, filtering, aggregation and shareable state",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_dataset_router(holder, registry))
app.include_router(create_views_router(holder, settings))
app.include_router(create_explorer_router(holder, settings))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    dataset = holder.dataset
    return {
        "status": "ok",
        "dataset_status": holder.status.value,
        "dataset_error": str(holder.failure) if holder.failure else None,
        "record_count": len(dataset) if dataset is not None else 0,
        "generation": holder.generation,
        "live_documents": registry.live_count,
    }
