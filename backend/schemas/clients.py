"""Schemas for client endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ClientPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nom: Optional[str] = None
    prenom: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    raison_sociale: Optional[str] = None
    actif: Optional[bool] = None

    @field_validator("nom", "prenom", "email", mode="before")
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None


class ClientStats(BaseModel):
    total_documents: int
    total_factures: int
    montant_total_factures: float
    total_proformas: int
    montant_total_proformas: float
    factures_en_attente: int
    derniere_facture: Optional[str] = None

    @field_validator("derniere_facture", mode="before")
    def _as_text(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        return value.isoformat() if hasattr(value, "isoformat") else str(value)


__all__ = ["ClientPayload", "ClientStats"]
