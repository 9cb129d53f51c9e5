"""Schemas for stock article endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StockArticlePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    reference: Optional[str] = None
    designation: Optional[str] = None
    quantite_stock: Optional[float] = None
    quantite_min: Optional[float] = None
    prix_achat: Optional[float] = None
    prix_vente: Optional[float] = None


class StockMovementRequest(BaseModel):
    type_mouvement: str = Field(..., description="entree, sortie ou ajustement")
    quantite: float
    motif: Optional[str] = None
    reference_document: Optional[str] = None


class StockValorisation(BaseModel):
    nombre_articles: int
    quantite_totale: float
    valeur_achat: float
    valeur_vente: float
    marge_potentielle: float
    taux_marge_moyen: float


__all__ = ["StockArticlePayload", "StockMovementRequest", "StockValorisation"]
