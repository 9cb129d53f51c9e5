"""Fusion des factures classiques, transport et non-transport en une liste unique."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Mapping

import pandas as pd
from sqlalchemy import text

from core.data_repository import query_records
from core.sources import SourceResult, degraded_sources, fetch_source

SOURCE_DOCUMENTS = "documents"
SOURCE_TRANSPORT = "factures_transport"
SOURCE_NON_TRANSPORT = "factures_non_transport"

# Ordre des sources, utilisé en dernier recours pour départager les égalités.
SOURCE_ORDER = {SOURCE_DOCUMENTS: 0, SOURCE_TRANSPORT: 1, SOURCE_NON_TRANSPORT: 2}

CATEGORY_BY_SOURCE = {
    SOURCE_TRANSPORT: "transport",
    SOURCE_NON_TRANSPORT: "non-transport",
}


def _first_present(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _normalize(
    record: Mapping[str, Any],
    *,
    source: str,
    clients: Mapping[Any, Mapping[str, Any]],
) -> dict[str, Any]:
    client = clients.get(record.get("client_id")) or {}
    if source == SOURCE_DOCUMENTS:
        montant_total = record.get("montant_ttc")
        categorie = record.get("categorie_facture") or "classique"
    else:
        montant_total = record.get("total_general")
        categorie = CATEGORY_BY_SOURCE[source]
    return {
        "id": record.get("id"),
        "numero": record.get("numero"),
        "client_id": record.get("client_id"),
        "client_nom": client.get("nom") or "",
        "client_prenom": client.get("prenom") or "",
        "client_email": client.get("email") or "",
        "entreprise_id": record.get("entreprise_id"),
        "date_emission": _first_present(record, "date_emission", "date_facture"),
        "date_echeance": record.get("date_echeance") or "",
        "montant_total": montant_total,
        "statut": record.get("statut"),
        "categorie_facture": categorie,
        "type_source": source,
        "source_type": source,
        "created_at": record.get("created_at"),
        "description": record.get("description") or record.get("notes") or "",
    }


def as_timestamp(value: Any) -> pd.Timestamp | None:
    """Convertit date / datetime / chaîne ISO en Timestamp UTC comparable."""
    if value in (None, ""):
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = pd.to_datetime(value, errors="coerce", utc=True)
    return None if pd.isna(stamp) else stamp


def sort_key_date(record: Mapping[str, Any]) -> pd.Timestamp | None:
    stamp = as_timestamp(record.get("date_emission"))
    return stamp if stamp is not None else as_timestamp(record.get("created_at"))


def sort_factures(records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Tri décroissant par date d'émission (ou de création), égalités par id croissant.

    Les enregistrements sans aucune date sont placés en fin de liste.
    """
    ordered = sorted(
        records,
        key=lambda rec: (
            rec.get("id") if isinstance(rec.get("id"), (int, float)) else float("inf"),
            SOURCE_ORDER.get(rec.get("type_source"), len(SOURCE_ORDER)),
        ),
    )
    dated = [(sort_key_date(rec), rec) for rec in ordered]
    with_date = [pair for pair in dated if pair[0] is not None]
    without_date = [rec for stamp, rec in dated if stamp is None]
    # sorted() est stable : l'ordre id/source est conservé entre dates égales
    with_date.sort(key=lambda pair: pair[0], reverse=True)
    return [rec for _, rec in with_date] + without_date


def merge_factures(
    documents: Iterable[Mapping[str, Any]],
    factures_transport: Iterable[Mapping[str, Any]],
    factures_non_transport: Iterable[Mapping[str, Any]],
    clients: Iterable[Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Normalise et fusionne les trois sources de factures."""
    clients_map = {client.get("id"): client for client in clients}
    merged: list[dict[str, Any]] = []
    merged.extend(
        _normalize(doc, source=SOURCE_DOCUMENTS, clients=clients_map)
        for doc in documents
        if doc.get("type_document") == "facture"
    )
    merged.extend(_normalize(f, source=SOURCE_TRANSPORT, clients=clients_map) for f in factures_transport)
    merged.extend(_normalize(f, source=SOURCE_NON_TRANSPORT, clients=clients_map) for f in factures_non_transport)
    return sort_factures(merged)


def _select_all(table: str, order_by: str = "created_at DESC"):
    return lambda: query_records(text(f"SELECT * FROM {table} ORDER BY {order_by}"))


def fetch_all_factures() -> tuple[list[dict[str, Any]], list[str]]:
    """Charge les quatre tables puis fusionne ; retourne (factures, sources dégradées)."""
    results: list[SourceResult[list[dict[str, Any]]]] = [
        fetch_source("clients", _select_all("clients", "id"), []),
        fetch_source(
            SOURCE_DOCUMENTS,
            lambda: query_records(
                text("SELECT * FROM documents WHERE type_document = :type ORDER BY created_at DESC"),
                {"type": "facture"},
            ),
            [],
        ),
        fetch_source(SOURCE_TRANSPORT, _select_all(SOURCE_TRANSPORT), []),
        fetch_source(SOURCE_NON_TRANSPORT, _select_all(SOURCE_NON_TRANSPORT), []),
    ]
    clients, documents, transport, non_transport = (result.value for result in results)
    return merge_factures(documents, transport, non_transport, clients), degraded_sources(results)


__all__ = ["as_timestamp", "fetch_all_factures", "merge_factures", "sort_factures"]
