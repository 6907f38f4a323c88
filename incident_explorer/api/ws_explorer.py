"""WebSocket endpoint for an interactive explorer session.

Path: /ws/explorer?<state query>

The connection's query string is decoded once into the session's initial
state.  Afterwards the client sends SessionAction JSON messages and the
server pushes, after each one:

    {"type": "location", "query": "..."}   — only when the encoded state
                                             changed; replace the address
                                             bar query, no navigation
    {"type": "views", "state": {...}, "views": {...}}

Invalid messages get {"type": "error"} and the session keeps running.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from incident_explorer.config import Settings
from incident_explorer.models.actions import session_action_adapter
from incident_explorer.services.dataset_holder import DatasetHolder
from incident_explorer.services.dispatch import apply_action
from incident_explorer.services.explorer_session import ExplorerSession

logger = logging.getLogger(__name__)


def create_explorer_router(holder: DatasetHolder, cfg: Settings) -> APIRouter:
    """Factory that wires the explorer endpoint to a DatasetHolder."""

    router = APIRouter()

    @router.websocket("/ws/explorer")
    async def explorer(websocket: WebSocket) -> None:
        await websocket.accept()

        dataset = holder.dataset
        if dataset is None:
            await websocket.send_json({
                "type": "error",
                "detail": f"Dataset unavailable ({holder.status.value})",
            })
            await websocket.close(code=1011)
            return

        outbox: list[str] = []
        session = ExplorerSession(dataset, dict(websocket.query_params), writer=outbox.append, cfg=cfg)
        logger.info("Explorer session opened (v=%d)", session.state.version)

        async def flush() -> None:
            for query in outbox:
                await websocket.send_json({"type": "location", "query": query})
            outbox.clear()
            await websocket.send_json({
                "type": "views",
                "state": session.state.summary(),
                "views": session.views().to_payload(),
            })

        try:
            await flush()
            while True:
                raw = await websocket.receive_json()
                try:
                    action = session_action_adapter.validate_python(raw)
                except ValidationError as exc:
                    await websocket.send_json({
                        "type": "error",
                        "detail": exc.errors(include_url=False, include_context=False),
                    })
                    continue
                apply_action(session, action)
                await flush()
        except WebSocketDisconnect:
            logger.info("Explorer session closed (v=%d)", session.state.version)
        finally:
            session.close()

    return router
