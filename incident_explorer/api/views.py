"""Stateless REST endpoint for derived views.

Path: GET /api/views?<state query>&xmin=&ymin=&xmax=&ymax=&limit=&records=

Decodes the state exactly as a fresh session would, computes every
derived view and returns it together with the canonical query string,
so a shared link can be rendered without opening a WebSocket.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from incident_explorer.api.dependencies import require_dataset
from incident_explorer.config import Settings
from incident_explorer.domain.extent import ExtentBounds
from incident_explorer.services.dataset_holder import DatasetHolder
from incident_explorer.services.explorer_session import ExplorerSession

_BOUND_KEYS = ("xmin", "ymin", "xmax", "ymax")
_CONTROL_KEYS = {*_BOUND_KEYS, "limit", "records"}


def create_views_router(holder: DatasetHolder, cfg: Settings) -> APIRouter:
    """Factory that wires the views endpoint to a DatasetHolder."""

    router = APIRouter(prefix="/api", tags=["views"])

    @router.get("/views")
    async def get_views(
        request: Request,
        limit: int | None = None,
        records: bool = False,
    ) -> dict[str, Any]:
        dataset = require_dataset(holder)
        params = request.query_params
        state_query = {k: v for k, v in params.items() if k not in _CONTROL_KEYS}

        session = ExplorerSession(dataset, state_query, cfg=cfg)
        try:
            if all(k in params for k in _BOUND_KEYS):
                try:
                    bounds = ExtentBounds(**{k: float(params[k]) for k in _BOUND_KEYS})
                except ValueError as exc:
                    raise HTTPException(status_code=422, detail=f"Invalid bounds: {exc}") from exc
                session.set_view_bounds(bounds)
            views = session.views(top_limit=limit)
            return {
                "state": session.state.summary(),
                "query": session.location_query,
                "views": views.to_payload(include_records=records),
            }
        finally:
            session.close()

    return router
