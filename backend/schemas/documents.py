"""Schemas for document (facture / proforma / devis) endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentLinePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: Optional[str] = None
    quantite: Any = None
    prix_unitaire: Any = None
    taux_tva: Any = None
    frais_administratif: Any = None
    ordre: Optional[int] = None
    item: Optional[str] = None
    date_transport: Optional[date] = None
    plaque_immat: Optional[str] = None
    ticket: Optional[str] = None
    tonnes: Any = None
    unite: Optional[str] = None


class DocumentPayload(BaseModel):
    """Champs acceptés en création / mise à jour ; les montants des lignes sont recalculés."""

    model_config = ConfigDict(extra="ignore")

    numero: Optional[str] = None
    type_document: Optional[str] = None
    client_id: Any = None
    entreprise_id: Any = None
    date_emission: Optional[date] = None
    date_echeance: Optional[date] = None
    statut: Optional[str] = None
    montant_ht: Any = None
    montant_tva: Any = None
    taux_tva: Any = None
    montant_ttc: Any = None
    remise_globale: Any = None
    conditions_paiement: Optional[str] = None
    notes: Optional[str] = None
    description: Optional[str] = None
    facture_originale_id: Any = None
    categorie_facture: Optional[str] = None
    monnaie: Optional[str] = None
    lignes: Optional[List[DocumentLinePayload]] = None

    @field_validator("numero", "statut", "type_document", mode="before")
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("date_emission", "date_echeance", mode="before")
    def _empty_date(cls, value: Any) -> Any:
        return None if value == "" else value

    def to_service_payload(self) -> dict[str, Any]:
        data = self.model_dump(exclude_unset=True, exclude={"lignes"})
        if self.lignes is not None:
            data["lignes"] = [line.model_dump(exclude_unset=True) for line in self.lignes]
        return data


class GenerateNumberRequest(BaseModel):
    entreprise_id: Optional[int] = None
    type_document: str = "proforma"


class GeneratedNumber(BaseModel):
    numero: str
    prefix: str
    entreprise_nom: Optional[str] = None
    count: int


class DuplicateRequest(BaseModel):
    type_document: Optional[str] = Field(default=None, description="Type du document copié (par défaut : identique).")


__all__ = [
    "DocumentLinePayload",
    "DocumentPayload",
    "DuplicateRequest",
    "GenerateNumberRequest",
    "GeneratedNumber",
]
