"""Reusable sample datasets for service-level tests."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    import pandas as pd  # noqa: F401


def _pd():
    """Lazy import pandas to avoid hard dependency during collection."""

    try:
        return importlib.import_module("pandas")
    except ModuleNotFoundError as exc:  # pragma: no cover - tests skip beforehand
        raise RuntimeError("pandas is required for sample datasets") from exc


CLIENTS = [
    {"id": 1, "nom": "Diallo", "prenom": "Awa", "email": "awa@example.com"},
    {"id": 2, "nom": "Martin", "prenom": "Paul", "email": "paul@example.com"},
]

DOCUMENT_FACTURE = {
    "id": 10,
    "numero": "FAC20240001",
    "type_document": "facture",
    "client_id": 1,
    "entreprise_id": 1,
    "date_emission": "2024-01-05",
    "date_echeance": "2024-02-04",
    "montant_ttc": 240.0,
    "statut": "emise",
    "categorie_facture": None,
    "notes": "Livraison janvier",
    "created_at": "2024-01-05 09:00:00",
}

DOCUMENT_PROFORMA = {
    "id": 11,
    "numero": "PRF-0001",
    "type_document": "proforma",
    "client_id": 2,
    "date_emission": "2024-03-01",
    "montant_ttc": 99.0,
    "statut": "brouillon",
    "created_at": "2024-03-01 09:00:00",
}

FACTURE_TRANSPORT = {
    "id": 3,
    "numero": "HRAKIN/0001/T/01/2024",
    "client_id": 2,
    "entreprise_id": 1,
    "date_facture": "2024-01-20",
    "total_general": 1500.0,
    "statut": "brouillon",
    "created_at": "2024-01-20 08:00:00",
}

FACTURE_NON_TRANSPORT = {
    "id": 7,
    "numero": "HRAKIN/0001/01/2024",
    "client_id": 99,
    "entreprise_id": 1,
    "date_facture": "2024-01-10",
    "total_general": 80.5,
    "statut": "payee",
    "notes": "Fournitures",
    "created_at": "2024-01-10 08:00:00",
}


def make_activity_rows(count: int, *, start_day: int = 1) -> list[dict]:
    """``count`` opérations de caisse datées de jours consécutifs de janvier 2024."""

    return [
        {
            "id": idx,
            "date_operation": f"2024-01-{start_day + idx:02d}",
            "description": f"Opération {idx}",
            "type_operation": "ENTREE",
        }
        for idx in range(count)
    ]


def make_stock_alerts_df() -> pd.DataFrame:
    """Articles sous le seuil, dont un en rupture."""

    pd = _pd()
    return pd.DataFrame(
        [
            {
                "reference": "ART-001",
                "designation": "Gasoil 20L",
                "quantite_stock": 0,
                "quantite_min": 5,
                "updated_at": "2024-01-03 10:00:00",
            },
            {
                "reference": "ART-002",
                "designation": "Huile moteur",
                "quantite_stock": 2.5,
                "quantite_min": 4,
                "updated_at": "2024-01-02 10:00:00",
            },
        ]
    )
