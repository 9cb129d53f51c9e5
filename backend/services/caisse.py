"""Opérations de caisse : saisie, filtres, solde et archivage mensuel."""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime
from typing import Any, Mapping

from sqlalchemy import text

from core.caisse_seed import normalize_operation_type, signed_amount
from core.data_repository import get_engine, query_df, query_records
from core.line_calculator import to_decimal

logger = logging.getLogger(__name__)


def normalize_operation(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Accepte les deux vocabulaires (libelle/description, type/type_operation, date/date_operation).

    Raises:
        ValueError: champ obligatoire manquant ou montant non numérique.
    """
    date_value = payload.get("date_operation") or payload.get("date")
    libelle = payload.get("libelle") or payload.get("description")
    operation_type = payload.get("type") or payload.get("type_operation")
    montant = to_decimal(payload.get("montant"), default=None)
    if not date_value or not libelle or not operation_type or montant is None:
        raise ValueError("Champs obligatoires manquants")
    operation_type = normalize_operation_type(operation_type)
    return {
        "date_operation": date_value,
        "description": str(libelle),
        "type_operation": operation_type,
        "montant": signed_amount(operation_type, montant),
        "categorie": payload.get("categorie"),
        "reference_document": payload.get("reference_document") or None,
    }


def list_operations(
    *,
    date_debut: str | None = None,
    date_fin: str | None = None,
    type: str | None = None,
    categorie: str | None = None,
    montant_min: float | None = None,
    montant_max: float | None = None,
    libelle: str | None = None,
) -> list[dict[str, Any]]:
    filters = ["1=1"]
    params: dict[str, Any] = {}
    if date_debut:
        filters.append("date_operation >= :date_debut")
        params["date_debut"] = date_debut
    if date_fin:
        filters.append("date_operation <= :date_fin")
        params["date_fin"] = date_fin
    if type:
        filters.append("type_operation = :type")
        params["type"] = normalize_operation_type(type)
    if categorie:
        filters.append("LOWER(categorie) = LOWER(:categorie)")
        params["categorie"] = categorie
    if montant_min is not None:
        filters.append("montant >= :montant_min")
        params["montant_min"] = float(montant_min)
    if montant_max is not None:
        filters.append("montant <= :montant_max")
        params["montant_max"] = float(montant_max)
    if libelle:
        filters.append("LOWER(description) LIKE :libelle")
        params["libelle"] = f"%{libelle.strip().lower()}%"
    sql = f"SELECT * FROM caisse WHERE {' AND '.join(filters)} ORDER BY date_operation, id"
    return query_records(text(sql), params)


def create_operation(payload: Mapping[str, Any]) -> dict[str, Any]:
    values = normalize_operation(payload)
    now = datetime.now()
    values.update({"created_at": now, "updated_at": now})
    with get_engine().begin() as conn:
        row = conn.execute(
            text(
                """
                INSERT INTO caisse (date_operation, description, type_operation, montant, categorie,
                                    reference_document, created_at, updated_at)
                VALUES (:date_operation, :description, :type_operation, :montant, :categorie,
                        :reference_document, :created_at, :updated_at)
                RETURNING *
                """
            ),
            values,
        ).fetchone()
    logger.info("Opération de caisse %s enregistrée (%s)", row.id, values["montant"])
    return row._asdict()


def update_operation(operation_id: int, payload: Mapping[str, Any]) -> dict[str, Any] | None:
    values = normalize_operation(payload)
    values.update({"id": int(operation_id), "updated_at": datetime.now()})
    with get_engine().begin() as conn:
        row = conn.execute(
            text(
                """
                UPDATE caisse
                SET date_operation = :date_operation, description = :description,
                    type_operation = :type_operation, montant = :montant, categorie = :categorie,
                    reference_document = :reference_document, updated_at = :updated_at
                WHERE id = :id
                RETURNING *
                """
            ),
            values,
        ).fetchone()
    return row._asdict() if row else None


def delete_operation(operation_id: int) -> bool:
    with get_engine().begin() as conn:
        result = conn.execute(text("DELETE FROM caisse WHERE id = :id"), {"id": int(operation_id)})
    return bool(result.rowcount)


def fetch_solde() -> float:
    df = query_df("SELECT COALESCE(SUM(montant), 0) AS solde FROM caisse")
    if df.empty:
        return 0.0
    return round(float(df.iloc[0]["solde"] or 0), 2)


def archiver_mois(annee: int, mois: int) -> int:
    """Archive les opérations du mois donné ; retourne le nombre de lignes touchées."""
    if not annee or not mois:
        raise ValueError("Année et mois requis")
    if not 1 <= int(mois) <= 12:
        raise ValueError("Mois invalide (attendu 1-12)")
    annee, mois = int(annee), int(mois)
    debut = date(annee, mois, 1)
    fin = date(annee, mois, calendar.monthrange(annee, mois)[1])
    with get_engine().begin() as conn:
        result = conn.execute(
            text("UPDATE caisse SET archive = TRUE WHERE date_operation >= :debut AND date_operation <= :fin"),
            {"debut": debut, "fin": fin},
        )
    logger.info("Caisse %02d/%s archivée (%s opérations)", mois, annee, result.rowcount)
    return int(result.rowcount or 0)


__all__ = [
    "archiver_mois",
    "create_operation",
    "delete_operation",
    "fetch_solde",
    "list_operations",
    "normalize_operation",
    "update_operation",
]
