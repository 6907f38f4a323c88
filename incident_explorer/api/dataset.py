"""REST endpoints for the loaded dataset and its rendering document.

Paths:
    GET  /api/dataset                 — extent, categories (with totals), sheets
    GET  /api/documents/{document_id} — re-serialised GeoJSON for the map
    POST /api/dataset/reload          — fetch again; old document released
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Response

from incident_explorer.api.dependencies import require_dataset
from incident_explorer.core.aggregation import category_totals
from incident_explorer.domain.errors import FetchFailure, IncidentExplorerError
from incident_explorer.services.dataset_holder import DatasetHolder
from incident_explorer.store.documents import DocumentRegistry

logger = logging.getLogger(__name__)


def create_dataset_router(holder: DatasetHolder, registry: DocumentRegistry) -> APIRouter:
    """Factory that wires the dataset endpoints to a holder and registry."""

    router = APIRouter(prefix="/api", tags=["dataset"])

    @router.get("/dataset")
    async def get_dataset() -> dict[str, Any]:
        dataset = require_dataset(holder)
        summary = dataset.summary()
        summary["category_totals"] = [
            c.model_dump() for c in category_totals(dataset.records, dataset.categories)
        ]
        summary["generation"] = holder.generation
        return summary

    @router.get("/documents/{document_id}")
    async def get_document(document_id: str) -> Response:
        body = registry.get(document_id)
        if body is None:
            raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
        return Response(content=body, media_type="application/geo+json")

    @router.post("/dataset/reload")
    async def reload_dataset() -> dict[str, Any]:
        try:
            dataset = await holder.load()
        except FetchFailure as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except IncidentExplorerError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        logger.info("Dataset reloaded (generation %d)", holder.generation)
        return {"status": "reloaded", "generation": holder.generation, **dataset.summary()}

    return router
