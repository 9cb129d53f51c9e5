"""Schemas for the line and document totals calculators.

Les entrées numériques restent permissives (chaînes, valeurs vides) : le
calculateur les ramène à zéro au lieu de rejeter la requête.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class LineCalculationRequest(BaseModel):
    quantite: Any = None
    prix_unitaire: Any = None
    taux_tva: Any = None
    frais_administratif: Any = 0
    tonnes: Any = None
    transport: bool = False


class LineAmountsResponse(BaseModel):
    montant_ht: float
    montant_tva: float
    montant_ttc: float
    total_poids: Optional[float] = None


class TotalsRequest(BaseModel):
    lignes: List[dict[str, Any]] = Field(default_factory=list)
    document: Optional[dict[str, Any]] = None
    recalculer_lignes: bool = Field(False, description="Recalcule chaque ligne avant de sommer.")


class TotalsResponse(BaseModel):
    total_ht: float
    total_tva: float
    total_ttc: float
    calcule_depuis_lignes: bool


__all__ = [
    "LineAmountsResponse",
    "LineCalculationRequest",
    "TotalsRequest",
    "TotalsResponse",
]
