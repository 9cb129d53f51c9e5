"""Contrat d'agrégation multi-sources : chaque table interrogée rend un résultat typé.

Une table absente du schéma dégrade la source (valeur par défaut, raison
conservée) ; toute autre erreur de base de données remonte à l'appelant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

from core.data_repository import is_missing_table_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    source: str
    value: T
    degraded: bool = False
    reason: str | None = None

    @classmethod
    def ok(cls, source: str, value: T) -> "SourceResult[T]":
        return cls(source=source, value=value)

    @classmethod
    def missing(cls, source: str, default: T, reason: str) -> "SourceResult[T]":
        return cls(source=source, value=default, degraded=True, reason=reason)


def fetch_source(source: str, loader: Callable[[], T], default: T) -> SourceResult[T]:
    """Exécute ``loader`` en isolant l'absence de table."""
    try:
        return SourceResult.ok(source, loader())
    except Exception as exc:
        if not is_missing_table_error(exc):
            raise
        logger.warning("Source %s indisponible (table absente): %s", source, exc)
        return SourceResult.missing(source, default, "table absente")


def fetch_first_available(
    source: str,
    loaders: Iterable[tuple[str, Callable[[], T]]],
    default: T,
) -> SourceResult[T]:
    """Essaie plusieurs tables candidates dans l'ordre (ex: ``stocks`` puis ``stock``)."""
    reasons: list[str] = []
    for table, loader in loaders:
        result = fetch_source(table, loader, default)
        if not result.degraded:
            return SourceResult.ok(source, result.value)
        reasons.append(f"{table}: {result.reason}")
    return SourceResult.missing(source, default, "; ".join(reasons) or "aucune table candidate")


def degraded_sources(results: Iterable[SourceResult[Any]]) -> list[str]:
    return sorted({result.source for result in results if result.degraded})


__all__ = ["SourceResult", "degraded_sources", "fetch_first_available", "fetch_source"]
