"""Liste fusionnée des factures (classiques, transport, non-transport)."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter

from backend.schemas.common import ApiResponse
from backend.schemas.factures import FactureRecord
from backend.services import all_factures as all_factures_service

router = APIRouter(prefix="/all-factures", tags=["factures"])


@router.get("", response_model=ApiResponse[List[FactureRecord]])
def list_all_factures():
    factures, degraded = all_factures_service.fetch_all_factures()
    return {"success": True, "data": factures, "total": len(factures), "degraded": degraded}
