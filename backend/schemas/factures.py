"""Schemas for the merged invoice list."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel

DateLike = Union[datetime, date, str]


class FactureRecord(BaseModel):
    id: Optional[int] = None
    numero: Optional[str] = None
    client_id: Optional[int] = None
    client_nom: str = ""
    client_prenom: str = ""
    client_email: str = ""
    entreprise_id: Optional[int] = None
    date_emission: Optional[DateLike] = None
    date_echeance: Optional[DateLike] = ""
    montant_total: Optional[float] = None
    statut: Optional[str] = None
    categorie_facture: str
    type_source: str
    source_type: str
    created_at: Optional[DateLike] = None
    description: str = ""


__all__ = ["FactureRecord"]
