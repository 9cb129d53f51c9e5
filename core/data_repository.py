"""Accès PostgreSQL partagé : moteur SQLAlchemy, lectures et écritures SQL brutes."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.sql.elements import ClauseElement, TextClause

from .database_url import get_database_url
from .settings import AppSettings

# SQLSTATE PostgreSQL "undefined_table"
MISSING_TABLE_SQLSTATE = "42P01"


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Retourne le moteur SQLAlchemy, mis en cache via functools."""
    settings = AppSettings.load()
    database_url = make_url(settings.database_url) if settings.database_url else get_database_url()
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    # SQLite (tests, démo locale) n'accepte pas pool_size/max_overflow.
    if database_url.get_backend_name() != "sqlite":
        kwargs.update(
            {
                "pool_size": max(1, settings.db_pool_size),
                "max_overflow": max(0, settings.db_pool_max_overflow),
            }
        )
    return create_engine(database_url, **kwargs)


def dispose_engine() -> None:
    """Ferme les connexions du pool (arrêt propre du serveur)."""
    if get_engine.cache_info().currsize:
        get_engine().dispose()
    get_engine.cache_clear()


def _normalize_statement(sql: str | ClauseElement) -> ClauseElement:
    if isinstance(sql, str):
        return text(sql)
    if isinstance(sql, ClauseElement):
        return sql
    raise TypeError("sql must be a string or SQLAlchemy ClauseElement")


def query_df(sql: str | ClauseElement, params=None) -> pd.DataFrame:
    """Exécute une requête SELECT et retourne le résultat sous forme de DataFrame Pandas."""
    statement = _normalize_statement(sql)
    if params is not None and not isinstance(params, dict):
        raise TypeError("params must be a mapping when provided")

    # Pré-lie les paramètres pour simplifier les tentatives de repli en cas d'erreur
    bound_statement = statement.bindparams(**params) if params else statement

    eng = get_engine()
    with eng.begin() as conn:
        try:
            result = conn.execute(bound_statement)
        except TypeError as exc:
            # Certains drivers exigent une chaîne brute : on recompile avec valeurs littérales.
            if isinstance(bound_statement, TextClause):
                compiled = bound_statement.compile(compile_kwargs={"literal_binds": True})
                result = conn.exec_driver_sql(str(compiled))
            else:
                raise exc

        columns = list(result.keys())
        rows = result.fetchall()

        if not rows:
            return pd.DataFrame(columns=columns)

        return pd.DataFrame([tuple(row) for row in rows], columns=columns)


def query_records(sql: str | ClauseElement, params=None) -> list[dict[str, Any]]:
    """Exécute une requête SELECT et retourne les lignes sous forme de dictionnaires.

    Contrairement à :func:`query_df`, les types natifs du driver sont conservés
    (pas de conversion des entiers nullables en float ni de NaN/NaT).
    """
    statement = _normalize_statement(sql)
    if params is not None and not isinstance(params, dict):
        raise TypeError("params must be a mapping when provided")

    eng = get_engine()
    with eng.connect() as conn:
        result = conn.execute(statement, params or {})
        return [row._asdict() for row in result]


def exec_sql(sql: str | ClauseElement, params=None) -> None:
    """
    Exécute une requête d'écriture (INSERT, UPDATE, DELETE).
    Supporte l'exécution en lot si params est une liste.
    """
    statement = _normalize_statement(sql)
    eng = get_engine()
    with eng.begin() as conn:
        if isinstance(params, list):
            conn.execute(statement, params)
        elif params is None:
            conn.execute(statement)
        else:
            conn.execute(statement, params)


def is_missing_table_error(exc: BaseException) -> bool:
    """Indique si l'exception signale une table absente du schéma.

    Reconnaît le SQLSTATE 42P01 (psycopg2 ``pgcode`` / psycopg ``sqlstate``),
    que l'erreur soit brute ou enveloppée par SQLAlchemy (``exc.orig``), ainsi
    que le message SQLite "no such table".
    """
    candidates = [exc]
    orig = getattr(exc, "orig", None)
    if orig is not None:
        candidates.append(orig)
    for candidate in candidates:
        for attribute in ("pgcode", "sqlstate", "code"):
            if getattr(candidate, attribute, None) == MISSING_TABLE_SQLSTATE:
                return True
        if "no such table" in str(candidate).lower():
            return True
    return False


__all__ = [
    "MISSING_TABLE_SQLSTATE",
    "dispose_engine",
    "exec_sql",
    "get_engine",
    "is_missing_table_error",
    "query_df",
    "query_records",
]
