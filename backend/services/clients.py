"""Clients : CRUD et statistiques de facturation par client."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

import pandas as pd
from sqlalchemy import text

from backend.errors import ConflictError, ResourceNotFoundError
from core.data_repository import query_df
from core.repositories import PagedResult, TableRepository

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CLIENT_COLUMNS = ("nom", "prenom", "email", "telephone", "adresse", "raison_sociale", "actif")

repository = TableRepository("clients", CLIENT_COLUMNS, order_by="nom ASC, id ASC")


def list_clients(*, page: int = 1, limit: int = 10, search: str = "", actif: bool | None = None) -> PagedResult[dict[str, Any]]:
    filters: list[str] = []
    params: dict[str, Any] = {}
    if search:
        filters.append("(LOWER(nom) LIKE :search OR LOWER(email) LIKE :search)")
        params["search"] = f"%{search.strip().lower()}%"
    if actif is not None:
        filters.append("actif = :actif")
        params["actif"] = actif
    return repository.paginate(page=page, per_page=limit, where=" AND ".join(filters), params=params)


def get_client(client_id: int) -> dict[str, Any]:
    client = repository.get_by_id(client_id)
    if client is None:
        raise ResourceNotFoundError("Client non trouvé")
    return client


def _check_email(email: str, *, exclude_id: int | None = None) -> None:
    if not EMAIL_RE.match(email):
        raise ValueError("Format d'email invalide")
    where = "email = :email" + (" AND id <> :id" if exclude_id is not None else "")
    params: dict[str, Any] = {"email": email}
    if exclude_id is not None:
        params["id"] = int(exclude_id)
    if repository.count(where, params):
        raise ConflictError("Un client avec cet email existe déjà")


def create_client(payload: Mapping[str, Any]) -> dict[str, Any]:
    if not payload.get("nom") or not payload.get("email"):
        raise ValueError("Le nom et l'email sont requis")
    _check_email(str(payload["email"]).strip())
    client = repository.add({**payload, "email": str(payload["email"]).strip()})
    logger.info("Nouveau client créé: %s (ID: %s)", client.get("nom"), client.get("id"))
    return client


def update_client(client_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
    get_client(client_id)
    if payload.get("email"):
        _check_email(str(payload["email"]).strip(), exclude_id=client_id)
    return repository.update(client_id, payload)


def delete_client(client_id: int) -> None:
    if not repository.delete(client_id):
        raise ResourceNotFoundError("Client non trouvé")
    logger.info("Client %s supprimé", client_id)


def fetch_client_stats(client_id: int) -> dict[str, Any]:
    """Volumes facturés au client, à partir de la table ``documents``."""
    get_client(client_id)
    df = query_df(
        text(
            """
            SELECT
                COUNT(*) AS total_documents,
                COALESCE(SUM(CASE WHEN type_document = 'facture' THEN 1 ELSE 0 END), 0) AS total_factures,
                COALESCE(SUM(CASE WHEN type_document = 'facture' THEN montant_ttc ELSE 0 END), 0) AS montant_total_factures,
                COALESCE(SUM(CASE WHEN type_document = 'proforma' THEN 1 ELSE 0 END), 0) AS total_proformas,
                COALESCE(SUM(CASE WHEN type_document = 'proforma' THEN montant_ttc ELSE 0 END), 0) AS montant_total_proformas,
                COALESCE(SUM(CASE WHEN type_document = 'facture' AND statut IN ('brouillon', 'envoyé') THEN 1 ELSE 0 END), 0)
                    AS factures_en_attente,
                MAX(CASE WHEN type_document = 'facture' THEN date_emission END) AS derniere_facture
            FROM documents
            WHERE client_id = :client_id
            """
        ),
        params={"client_id": int(client_id)},
    )
    if df.empty:
        return {"total_documents": 0, "total_factures": 0, "montant_total_factures": 0.0,
                "total_proformas": 0, "montant_total_proformas": 0.0, "factures_en_attente": 0,
                "derniere_facture": None}
    row = df.iloc[0]
    derniere = row.get("derniere_facture")
    return {
        "total_documents": int(row.get("total_documents", 0) or 0),
        "total_factures": int(row.get("total_factures", 0) or 0),
        "montant_total_factures": float(row.get("montant_total_factures", 0) or 0),
        "total_proformas": int(row.get("total_proformas", 0) or 0),
        "montant_total_proformas": float(row.get("montant_total_proformas", 0) or 0),
        "factures_en_attente": int(row.get("factures_en_attente", 0) or 0),
        "derniere_facture": None if pd.isna(derniere) else derniere,
    }


__all__ = [
    "create_client",
    "delete_client",
    "fetch_client_stats",
    "get_client",
    "list_clients",
    "update_client",
]
