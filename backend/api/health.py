"""Statut de l'API et de la base."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from backend.settings import Settings
from core.data_repository import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["status"])


@router.get("/status")
def get_status():
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Base de données injoignable: %s", exc)
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "Service indisponible",
                "data": {"database": "Disconnected"},
            },
        )

    return {
        "success": True,
        "message": "API Heraclion opérationnelle",
        "data": {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": Settings.load().app_env,
            "database": "Connected",
        },
    }
