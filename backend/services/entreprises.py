"""Entreprises émettrices (transport / non-transport) et numérotation de leurs factures."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping

from backend.errors import ResourceNotFoundError
from core.data_repository import query_df
from core.repositories import TableRepository

logger = logging.getLogger(__name__)

ENTREPRISE_TYPES = ("TRANSPORT", "NON_TRANSPORT")
DEFAULT_INVOICE_PREFIX = "HRAKIN"

ENTREPRISE_COLUMNS = (
    "nom",
    "logo",
    "telephone",
    "adresse",
    "reference",
    "autres_coordonnees",
    "prefix_facture",
    "type_entreprise",
    "template_facture",
    "template_proforma",
)

repository = TableRepository("entreprises", ENTREPRISE_COLUMNS, order_by="nom ASC, id ASC")


def list_entreprises(*, type_entreprise: str | None = None) -> list[dict[str, Any]]:
    if type_entreprise:
        return repository.list_all(where="type_entreprise = :type", params={"type": type_entreprise})
    return repository.list_all()


def get_entreprise(entreprise_id: int) -> dict[str, Any]:
    entreprise = repository.get_by_id(entreprise_id)
    if entreprise is None:
        raise ResourceNotFoundError("Entreprise non trouvée")
    return entreprise


def _check_type(value: Any) -> None:
    if value not in ENTREPRISE_TYPES:
        raise ValueError("Type d'entreprise invalide")


def create_entreprise(payload: Mapping[str, Any]) -> dict[str, Any]:
    if not payload.get("nom") or not payload.get("type_entreprise"):
        raise ValueError("Le nom et le type d'entreprise sont requis")
    _check_type(payload["type_entreprise"])
    entreprise = repository.add(payload)
    logger.info("Entreprise créée: %s (ID: %s)", entreprise.get("nom"), entreprise.get("id"))
    return entreprise


def update_entreprise(entreprise_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
    get_entreprise(entreprise_id)
    if payload.get("type_entreprise") is not None:
        _check_type(payload["type_entreprise"])
    return repository.update(entreprise_id, payload)


def delete_entreprise(entreprise_id: int) -> None:
    if not repository.delete(entreprise_id):
        raise ResourceNotFoundError("Entreprise non trouvée")
    logger.info("Entreprise %s supprimée", entreprise_id)


def next_invoice_number(entreprise_id: int, categorie_facture: str = "transport", *, today: date | None = None) -> dict[str, Any]:
    """Prochain numéro mensuel : ``PREFIXE/0001/T/MM/AAAA`` (transport) ou ``PREFIXE/0001/MM/AAAA``."""
    today = today or date.today()
    entreprise = get_entreprise(entreprise_id)
    debut = today.replace(day=1)
    fin = date(today.year + (today.month == 12), today.month % 12 + 1, 1)
    df = query_df(
        """
        SELECT COUNT(*) AS count FROM documents
        WHERE entreprise_id = :entreprise_id
          AND categorie_facture = :categorie
          AND type_document = 'facture'
          AND date_emission >= :debut AND date_emission < :fin
        """,
        params={"entreprise_id": int(entreprise_id), "categorie": categorie_facture, "debut": debut, "fin": fin},
    )
    sequence = (int(df.iloc[0]["count"] or 0) if not df.empty else 0) + 1
    prefix = entreprise.get("prefix_facture") or DEFAULT_INVOICE_PREFIX
    parts = [prefix, f"{sequence:04d}"]
    if categorie_facture == "transport":
        parts.append("T")
    parts.extend([f"{today.month:02d}", str(today.year)])
    numero = "/".join(parts)
    logger.info("Numéro généré pour entreprise %s: %s", entreprise_id, numero)
    return {"numero": numero, "prefix": prefix, "sequence": sequence, "categorie_facture": categorie_facture}


__all__ = [
    "ENTREPRISE_TYPES",
    "create_entreprise",
    "delete_entreprise",
    "get_entreprise",
    "list_entreprises",
    "next_invoice_number",
    "update_entreprise",
]
