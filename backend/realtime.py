"""Registre des connexions WebSocket du tableau de bord."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Clients connectés à ``/ws`` ; diffusion au mieux, sans accusé de réception."""

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()

    def __len__(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)
        logger.info("Client WebSocket connecté (%s actifs)", len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info("Client WebSocket déconnecté (%s actifs)", len(self._connections))

    async def broadcast(self, message: dict[str, Any]) -> int:
        """Envoie ``message`` à chaque client ; retourne le nombre de livraisons réussies."""
        delivered = 0
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except Exception as exc:
                logger.warning("Envoi WebSocket impossible, client retiré: %s", exc)
                self._connections.discard(websocket)
            else:
                delivered += 1
        return delivered


manager = ConnectionManager()

__all__ = ["ConnectionManager", "manager"]
