"""Canal WebSocket ``/ws`` (messages serveur vers client uniquement)."""

from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from backend.realtime import manager

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def dashboard_socket(websocket: WebSocket) -> None:
    await manager.connect(websocket)
    try:
        while True:
            # Les messages entrants sont ignorés.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)
