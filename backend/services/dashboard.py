"""Dashboard aggregation services."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

import pandas as pd
from sqlalchemy import text

from backend.services.all_factures import as_timestamp
from core.data_repository import query_df, query_records
from core.sources import SourceResult, degraded_sources, fetch_first_available, fetch_source

logger = logging.getLogger(__name__)

ACTIVITY_LIMIT_PER_SOURCE = 5
ACTIVITY_FEED_LIMIT = 10
PENDING_STATUSES = ("brouillon", "envoyé")
STOCK_TABLES = ("stocks", "stock")


def _scalar(sql: str, params: dict[str, Any] | None = None) -> Any:
    df = query_df(sql, params=params)
    if df.empty:
        return 0
    value = df.iloc[0]["value"]
    return 0 if pd.isna(value) else value


def _count(table: str, where: str = "", params: dict[str, Any] | None = None) -> Callable[[], int]:
    sql = f"SELECT COUNT(*) AS value FROM {table}" + (f" WHERE {where}" if where else "")
    return lambda: int(_scalar(sql, params))


def _sum(table: str, column: str, where: str = "", params: dict[str, Any] | None = None) -> Callable[[], float]:
    sql = f"SELECT COALESCE(SUM({column}), 0) AS value FROM {table}" + (f" WHERE {where}" if where else "")
    return lambda: float(_scalar(sql, params))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def fetch_stats() -> tuple[Dict[str, Any], List[str]]:
    """Statistiques globales du tableau de bord et sources dégradées.

    Les totaux factures / proformas / montant proviennent des tables
    spécialisées (transport, non-transport) ; lorsqu'ils valent zéro, la
    table générique ``documents`` filtrée par type prend le relais.
    """
    results: list[SourceResult[Any]] = []

    def fetch(source: str, loader: Callable[[], Any], default: Any = 0) -> Any:
        result = fetch_source(source, loader, default)
        results.append(result)
        return result.value

    factures_nt = fetch("factures_non_transport", _count("factures_non_transport"))
    factures_t = fetch("factures_transport", _count("factures_transport"))
    montant_nt = fetch("factures_non_transport", _sum("factures_non_transport", "total_general"), 0.0)
    montant_t = fetch("factures_transport", _sum("factures_transport", "total_general"), 0.0)
    proformas_nt = fetch("items_proforma_non_transport", _count("items_proforma_non_transport"))
    proformas_t = fetch("items_proforma_transport", _count("items_proforma_transport"))
    clients = fetch("clients", _count("clients"))
    entreprises = fetch("entreprises", _count("entreprises"))
    solde_caisse = fetch("caisse", _sum("caisse", "montant"), 0.0)

    stock_result = fetch_first_available("stocks", [(table, _count(table)) for table in STOCK_TABLES], 0)
    results.append(stock_result)
    stock_articles = stock_result.value

    total_factures = factures_nt + factures_t
    if total_factures == 0:
        total_factures = fetch("documents", _count("documents", "type_document = :type", {"type": "facture"}))
    total_proformas = proformas_nt + proformas_t
    if total_proformas == 0:
        total_proformas = fetch("documents", _count("documents", "type_document = :type", {"type": "proforma"}))
    montant_total = montant_nt + montant_t
    if montant_total == 0:
        montant_total = fetch(
            "documents",
            _sum("documents", "montant_ttc", "type_document = :type", {"type": "facture"}),
            0.0,
        )

    total_documents = fetch("documents", _count("documents"))
    en_attente = fetch(
        "documents",
        _count(
            "documents",
            "type_document = :type AND statut IN (:statut_1, :statut_2)",
            {"type": "facture", "statut_1": PENDING_STATUSES[0], "statut_2": PENDING_STATUSES[1]},
        ),
    )

    stats = {
        "totalFacturesNonTransport": factures_nt,
        "totalFacturesTransport": factures_t,
        "totalProformasNonTransport": proformas_nt,
        "totalProformasTransport": proformas_t,
        "totalFactures": total_factures,
        "totalProformas": total_proformas,
        "total_stock_articles": stock_articles,
        "totalStockArticles": stock_articles,
        "totalClients": clients,
        "totalEntreprises": entreprises,
        "montant_total_factures": round(float(montant_total), 2),
        "factures_en_attente": en_attente,
        "solde_caisse": round(float(solde_caisse), 2),
        "total_documents": total_documents,
        "totalDocuments": total_documents,
        "date": _now_iso(),
    }
    return stats, degraded_sources(results)


def _latest(table: str, order_column: str, where: str = "", params: dict[str, Any] | None = None):
    clause = f"WHERE {where}" if where else ""
    sql = text(f"SELECT * FROM {table} {clause} ORDER BY {order_column} DESC LIMIT :limit")
    return lambda: query_records(sql, {**(params or {}), "limit": ACTIVITY_LIMIT_PER_SOURCE})


def _stock_activity(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "Stock",
        "message": f"Mise à jour du stock pour {row.get('designation') or row.get('reference')}",
        "date": row.get("updated_at") or row.get("created_at"),
    }


def _caisse_activity(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "Caisse",
        "message": f"Opération caisse : {row.get('description') or row.get('type_operation')}",
        "date": row.get("date_operation") or row.get("created_at"),
    }


def sort_activities(activities: List[dict[str, Any]], limit: int = ACTIVITY_FEED_LIMIT) -> List[dict[str, Any]]:
    """Tri décroissant par date, activités sans date en fin, tronqué à ``limit``."""
    stamped = [(as_timestamp(activity.get("date")), activity) for activity in activities]
    dated = [pair for pair in stamped if pair[0] is not None]
    dated.sort(key=lambda pair: pair[0], reverse=True)
    undated = [activity for stamp, activity in stamped if stamp is None]
    return ([activity for _, activity in dated] + undated)[:limit]


def fetch_recent_activities() -> tuple[List[dict[str, Any]], List[str]]:
    """Flux d'activité : 5 derniers éléments par source, 10 au total."""
    results = [
        fetch_source("factures_non_transport", _latest("factures_non_transport", "created_at"), []),
        fetch_source("factures_transport", _latest("factures_transport", "created_at"), []),
        fetch_source("items_proforma_transport", _latest("items_proforma_transport", "date_item"), []),
        fetch_source("stocks", _latest("stocks", "updated_at"), []),
        fetch_source("caisse", _latest("caisse", "date_operation"), []),
    ]
    non_transport, transport, proformas, stocks, caisse = (result.value for result in results)

    activities: list[dict[str, Any]] = []
    activities.extend(
        {
            "type": "Facture Non Transport",
            "message": f"Nouvelle facture (non transport) pour {row.get('client_id')}",
            "date": row.get("created_at"),
        }
        for row in non_transport
    )
    activities.extend(
        {
            "type": "Facture Transport",
            "message": f"Nouvelle facture (transport) pour {row.get('client_id')}",
            "date": row.get("created_at"),
        }
        for row in transport
    )
    activities.extend(
        {
            "type": "Proforma Transport",
            "message": f"Nouveau proforma (transport) pour {row.get('proforma_transport_id')}",
            "date": row.get("date_item"),
        }
        for row in proformas
    )
    activities.extend(_stock_activity(row) for row in stocks)
    activities.extend(_caisse_activity(row) for row in caisse)
    return sort_activities(activities), degraded_sources(results)


def _format_quantity(value: Any) -> str:
    number = float(value or 0)
    return str(int(number)) if number.is_integer() else f"{number:g}"


def build_stock_alert(row: dict[str, Any]) -> dict[str, Any]:
    quantite_stock = float(row.get("quantite_stock") or 0)
    quantite_min = float(row.get("quantite_min") or 0)
    return {
        "type": "Stock",
        "message": f"Stock faible pour l'article {row.get('designation')} (réf: {row.get('reference')})",
        "description": (
            f"Quantité en stock: {_format_quantity(quantite_stock)}, "
            f"minimum requis: {_format_quantity(quantite_min)}"
        ),
        "date": row.get("updated_at") or row.get("created_at"),
        "deficit": round(quantite_min - quantite_stock, 3),
        "alerte_critique": quantite_stock == 0,
    }


def fetch_alerts() -> tuple[List[dict[str, Any]], List[str]]:
    """Articles dont le stock est inférieur ou égal au minimum, triés par référence."""

    def loader(table: str):
        sql = text(f"SELECT * FROM {table} WHERE quantite_stock <= quantite_min ORDER BY reference ASC")
        return lambda: query_records(sql)

    result = fetch_first_available("stocks", [(table, loader(table)) for table in STOCK_TABLES], [])
    return [build_stock_alert(row) for row in result.value], degraded_sources([result])


def build_push_snapshot() -> Dict[str, Any]:
    """Instantané diffusé périodiquement aux clients WebSocket.

    Basé sur la table ``documents`` (factures / proformas), les stocks et la caisse.
    """
    results: list[SourceResult[Any]] = [
        fetch_source("documents", _count("documents", "type_document = :type", {"type": "facture"}), 0),
        fetch_source("documents", _count("documents", "type_document = :type", {"type": "proforma"}), 0),
        fetch_source("clients", _count("clients"), 0),
        fetch_source("entreprises", _count("entreprises"), 0),
        fetch_source("documents", _latest("documents", "created_at", "type_document = :type", {"type": "facture"}), []),
        fetch_source("documents", _latest("documents", "created_at", "type_document = :type", {"type": "proforma"}), []),
        fetch_source("stocks", _latest("stocks", "updated_at"), []),
        fetch_source("caisse", _latest("caisse", "date_operation"), []),
    ]
    total_factures, total_proformas, clients, entreprises, factures, proformas, stocks, caisse = (
        result.value for result in results
    )

    activities: list[dict[str, Any]] = []
    activities.extend(
        {
            "type": "Facture",
            "message": f"Nouvelle facture pour {row.get('client_id')}",
            "date": row.get("created_at"),
        }
        for row in factures
    )
    activities.extend(
        {
            "type": "Proforma",
            "message": f"Nouveau proforma pour {row.get('client_id')}",
            "date": row.get("created_at"),
        }
        for row in proformas
    )
    activities.extend(_stock_activity(row) for row in stocks)
    activities.extend(_caisse_activity(row) for row in caisse)

    degraded = degraded_sources(results)
    if degraded:
        logger.debug("Instantané dashboard partiel, sources dégradées: %s", ", ".join(degraded))

    return {
        "stats": {
            "totalFactures": total_factures,
            "totalProformas": total_proformas,
            "totalClients": clients,
            "totalEntreprises": entreprises,
            "date": _now_iso(),
        },
        "activities": sort_activities(activities),
    }


__all__ = [
    "build_push_snapshot",
    "build_stock_alert",
    "fetch_alerts",
    "fetch_recent_activities",
    "fetch_stats",
    "sort_activities",
]
