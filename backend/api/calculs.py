"""Calculateur de lignes et de totaux, partagé avec les formulaires de saisie."""

from __future__ import annotations

from fastapi import APIRouter

from backend.schemas.calculs import (
    LineAmountsResponse,
    LineCalculationRequest,
    TotalsRequest,
    TotalsResponse,
)
from core.document_totals import compute_document_totals
from core.line_calculator import calculate_line, recalculate_line, transport_weight

router = APIRouter(prefix="/calculs", tags=["calculs"])


@router.post("/ligne", response_model=LineAmountsResponse)
def calculate_line_amounts(payload: LineCalculationRequest):
    amounts = calculate_line(
        payload.quantite,
        payload.prix_unitaire,
        payload.taux_tva,
        payload.frais_administratif,
    ).to_dict()
    if payload.transport:
        amounts["total_poids"] = transport_weight(payload.tonnes)
    return amounts


@router.post("/totaux", response_model=TotalsResponse)
def calculate_totals(payload: TotalsRequest):
    lines = payload.lignes
    if payload.recalculer_lignes:
        lines = [recalculate_line(line) for line in lines]
    return compute_document_totals(lines, payload.document).to_dict()
