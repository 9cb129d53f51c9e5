"""Schemas for entreprise endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class EntreprisePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nom: Optional[str] = None
    logo: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    reference: Optional[str] = None
    autres_coordonnees: Optional[str] = None
    prefix_facture: Optional[str] = None
    type_entreprise: Optional[str] = None
    template_facture: Optional[str] = None
    template_proforma: Optional[str] = None


class NextNumberRequest(BaseModel):
    categorie_facture: str = "transport"


class NextNumberResponse(BaseModel):
    success: bool = True
    numero: str
    prefix: str
    sequence: int
    categorie_facture: str


__all__ = ["EntreprisePayload", "NextNumberRequest", "NextNumberResponse"]
