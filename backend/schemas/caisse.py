"""Schemas for cash register (caisse) endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CaisseOperationPayload(BaseModel):
    """Les deux vocabulaires (``libelle``/``description``, ``type``/``type_operation``...) sont acceptés."""

    model_config = ConfigDict(extra="ignore")

    date: Optional[str] = None
    date_operation: Optional[str] = None
    libelle: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    type_operation: Optional[str] = None
    montant: Any = None
    categorie: Optional[str] = None
    reference_document: Optional[str] = None


class ArchiveRequest(BaseModel):
    annee: Optional[int] = Field(default=None, ge=2000, le=2100)
    mois: Optional[int] = Field(default=None, ge=1, le=12)


class SoldeResponse(BaseModel):
    success: bool = True
    solde: float


__all__ = ["ArchiveRequest", "CaisseOperationPayload", "SoldeResponse"]
