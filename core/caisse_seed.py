"""Chargement des opérations de caisse initiales depuis un fichier YAML.

Exécuté une seule fois au démarrage, uniquement si ``CAISSE_SEED_FILE`` est
défini et que la table ``caisse`` est vide.

Format attendu::

    operations:
      - date: 2025-10-10
        libelle: Achat carburant
        type: sortie
        categorie: Carburant
        montant: 20000
"""

from __future__ import annotations

import logging
import unicodedata
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy import text

from core.data_repository import exec_sql, query_df
from core.line_calculator import to_decimal

logger = logging.getLogger(__name__)

OPERATION_TYPES = ("ENTREE", "SORTIE")


def normalize_operation_type(value: Any) -> str:
    """'entrée', 'Entree', 'SORTIE'... -> 'ENTREE' / 'SORTIE'."""
    raw = unicodedata.normalize("NFKD", str(value or "")).encode("ascii", "ignore").decode("ascii")
    cleaned = raw.strip().upper()
    if cleaned not in OPERATION_TYPES:
        raise ValueError(f"Type d'opération inconnu: {value!r} (attendu: entree ou sortie)")
    return cleaned


def signed_amount(operation_type: str, montant: Any) -> float:
    """Les sorties sont stockées en négatif, les entrées en positif."""
    amount = abs(to_decimal(montant))
    return float(-amount if operation_type == "SORTIE" else amount)


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def load_seed_operations(path: str | Path) -> list[dict[str, Any]]:
    """Lit et normalise les opérations du fichier de seed."""
    content = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    entries = content.get("operations", []) if isinstance(content, dict) else content
    if not isinstance(entries, list):
        raise ValueError(f"{path}: la clé 'operations' doit contenir une liste")

    operations: list[dict[str, Any]] = []
    for idx, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: opération {idx} invalide")
        operation_type = normalize_operation_type(entry.get("type") or entry.get("type_operation"))
        libelle = entry.get("libelle") or entry.get("description")
        if not libelle:
            raise ValueError(f"{path}: opération {idx} sans libellé")
        operations.append(
            {
                "date_operation": _parse_date(entry.get("date") or entry.get("date_operation")),
                "description": str(libelle),
                "type_operation": operation_type,
                "montant": signed_amount(operation_type, entry.get("montant")),
                "categorie": entry.get("categorie"),
            }
        )
    return operations


def seed_caisse_if_empty(path: str | Path | None) -> int:
    """Insère les opérations de seed si la caisse est vide. Retourne le nombre inséré."""
    if not path:
        return 0
    df = query_df("SELECT COUNT(*) AS count FROM caisse")
    existing = int(df.iloc[0]["count"] or 0) if not df.empty else 0
    if existing:
        logger.info("Caisse déjà alimentée (%s opérations), seed ignoré", existing)
        return 0

    operations = load_seed_operations(path)
    if not operations:
        return 0
    exec_sql(
        text(
            """
            INSERT INTO caisse (date_operation, description, type_operation, montant, categorie)
            VALUES (:date_operation, :description, :type_operation, :montant, :categorie)
            """
        ),
        operations,
    )
    logger.info("%s opérations de caisse initiales chargées depuis %s", len(operations), path)
    return len(operations)


__all__ = [
    "OPERATION_TYPES",
    "load_seed_operations",
    "normalize_operation_type",
    "seed_caisse_if_empty",
    "signed_amount",
]
