"""Articles de stock : consultation, alertes de seuil, valorisation et mouvements."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from sqlalchemy import text

from backend.errors import ConflictError, ResourceNotFoundError
from core.data_repository import get_engine, query_df
from core.line_calculator import to_float
from core.repositories import PagedResult, TableRepository

logger = logging.getLogger(__name__)

STOCK_COLUMNS = ("reference", "designation", "quantite_stock", "quantite_min", "prix_achat", "prix_vente")
MOVEMENT_TYPES = ("entree", "sortie", "ajustement")

repository = TableRepository("stocks", STOCK_COLUMNS, order_by="reference ASC")


def _with_indicators(article: dict[str, Any]) -> dict[str, Any]:
    prix_achat = to_float(article.get("prix_achat"))
    prix_vente = to_float(article.get("prix_vente"))
    article["alerte_stock"] = to_float(article.get("quantite_stock")) <= to_float(article.get("quantite_min"))
    article["marge_unitaire"] = round(prix_vente - prix_achat, 2)
    article["taux_marge"] = round((prix_vente - prix_achat) / prix_achat * 100, 2) if prix_achat > 0 else 0
    return article


def list_articles(*, page: int = 1, limit: int = 10, search: str = "", alerte: bool = False) -> PagedResult[dict[str, Any]]:
    filters: list[str] = []
    params: dict[str, Any] = {}
    if search:
        filters.append("(LOWER(reference) LIKE :search OR LOWER(designation) LIKE :search)")
        params["search"] = f"%{search.strip().lower()}%"
    if alerte:
        filters.append("quantite_stock <= quantite_min")
    result = repository.paginate(page=page, per_page=limit, where=" AND ".join(filters), params=params)
    result.items = [_with_indicators(article) for article in result.items]
    return result


def get_article(article_id: int) -> dict[str, Any]:
    article = repository.get_by_id(article_id)
    if article is None:
        raise ResourceNotFoundError("Article non trouvé")
    return _with_indicators(article)


def fetch_alertes() -> List[dict[str, Any]]:
    """Articles sous le seuil minimum, enrichis du déficit."""
    articles = repository.list_all(where="quantite_stock <= quantite_min", order_by="reference ASC")
    for article in articles:
        quantite_stock = to_float(article.get("quantite_stock"))
        article["deficit"] = to_float(article.get("quantite_min")) - quantite_stock
        article["alerte_critique"] = quantite_stock == 0
    logger.info("%s articles en alerte de stock", len(articles))
    return articles


def fetch_valorisation() -> Dict[str, Any]:
    df = query_df(
        """
        SELECT
            COUNT(*) AS nombre_articles,
            COALESCE(SUM(quantite_stock), 0) AS quantite_totale,
            COALESCE(SUM(quantite_stock * prix_achat), 0) AS valeur_achat,
            COALESCE(SUM(quantite_stock * prix_vente), 0) AS valeur_vente,
            COALESCE(SUM(quantite_stock * (prix_vente - prix_achat)), 0) AS marge_potentielle
        FROM stocks
        """
    )
    row = df.iloc[0] if not df.empty else {}
    valeur_achat = to_float(row.get("valeur_achat"))
    marge = to_float(row.get("marge_potentielle"))
    return {
        "nombre_articles": int(to_float(row.get("nombre_articles"))),
        "quantite_totale": to_float(row.get("quantite_totale")),
        "valeur_achat": round(valeur_achat, 2),
        "valeur_vente": round(to_float(row.get("valeur_vente")), 2),
        "marge_potentielle": round(marge, 2),
        "taux_marge_moyen": round(marge / valeur_achat * 100, 2) if valeur_achat > 0 else 0,
    }


def _validate_amounts(payload: Mapping[str, Any]) -> None:
    for column in ("quantite_stock", "prix_achat", "prix_vente"):
        if payload.get(column) is not None and to_float(payload[column]) < 0:
            raise ValueError("Les quantités et prix ne peuvent pas être négatifs")


def _check_reference(reference: str, *, exclude_id: int | None = None) -> None:
    where = "reference = :reference" + (" AND id <> :id" if exclude_id is not None else "")
    params: dict[str, Any] = {"reference": reference}
    if exclude_id is not None:
        params["id"] = int(exclude_id)
    if repository.count(where, params):
        raise ConflictError("Un article avec cette référence existe déjà")


def create_article(payload: Mapping[str, Any]) -> dict[str, Any]:
    required = ("reference", "designation", "quantite_stock", "prix_achat", "prix_vente")
    if any(payload.get(column) in (None, "") for column in required):
        raise ValueError("Référence, désignation, quantité en stock, prix d'achat et prix de vente sont requis")
    _validate_amounts(payload)
    _check_reference(payload["reference"])
    article = repository.add({"quantite_min": 0, **payload})
    logger.info("Nouvel article créé: %s - %s (ID: %s)", article.get("reference"), article.get("designation"), article.get("id"))
    return article


def update_article(article_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
    existing = get_article(article_id)
    _validate_amounts(payload)
    if payload.get("reference") and payload["reference"] != existing.get("reference"):
        _check_reference(payload["reference"], exclude_id=article_id)
    return repository.update(article_id, payload)


def delete_article(article_id: int) -> None:
    if not repository.delete(article_id):
        raise ResourceNotFoundError("Article non trouvé")


def record_movement(
    article_id: int,
    type_mouvement: str,
    quantite: Any,
    *,
    motif: str | None = None,
    reference_document: str | None = None,
) -> dict[str, Any]:
    """Entrée, sortie ou ajustement d'inventaire ; la quantité résultante ne peut être négative."""
    if type_mouvement not in MOVEMENT_TYPES:
        raise ValueError("Type de mouvement invalide")
    quantity = to_float(quantite)
    if quantity <= 0:
        raise ValueError("La quantité doit être positive")

    with get_engine().begin() as conn:
        row = conn.execute(text("SELECT * FROM stocks WHERE id = :id"), {"id": int(article_id)}).fetchone()
        if row is None:
            raise ResourceNotFoundError("Article non trouvé")
        article = row._asdict()
        ancienne = to_float(article.get("quantite_stock"))
        if type_mouvement == "entree":
            nouvelle = ancienne + quantity
        elif type_mouvement == "sortie":
            nouvelle = ancienne - quantity
            if nouvelle < 0:
                raise ValueError("Stock insuffisant pour cette sortie")
        else:
            nouvelle = quantity
        updated = conn.execute(
            text("UPDATE stocks SET quantite_stock = :quantite, updated_at = CURRENT_TIMESTAMP WHERE id = :id RETURNING *"),
            {"quantite": nouvelle, "id": int(article_id)},
        ).fetchone()._asdict()

    logger.info(
        "Mouvement de stock: %s - %s de %s unités. Nouveau stock: %s",
        article.get("reference"),
        type_mouvement,
        quantity,
        nouvelle,
    )
    return {
        "article": updated,
        "mouvement": {
            "type_mouvement": type_mouvement,
            "quantite": quantity,
            "ancienne_quantite": ancienne,
            "nouvelle_quantite": nouvelle,
            "motif": motif,
            "reference_document": reference_document,
        },
    }


__all__ = [
    "create_article",
    "delete_article",
    "fetch_alertes",
    "fetch_valorisation",
    "get_article",
    "list_articles",
    "record_movement",
    "update_article",
]
