"""Adresse de la base PostgreSQL, lue depuis l'environnement.

``DATABASE_URL`` l'emporte ; à défaut l'URL est assemblée à partir des
variables ``DB_*`` (ou de leurs équivalents ``POSTGRES_*`` de l'image Docker).
"""

from __future__ import annotations

import os

from sqlalchemy.engine import URL, make_url

DRIVERNAME = "postgresql+psycopg2"

# composant de l'URL -> (variables lues dans l'ordre, valeur par défaut)
URL_PARTS: dict[str, tuple[tuple[str, ...], str | None]] = {
    "username": (("DB_USER", "POSTGRES_USER"), "postgres"),
    "password": (("DB_PASSWORD", "POSTGRES_PASSWORD"), None),
    "host": (("DB_HOST", "POSTGRES_HOST"), "localhost"),
    "port": (("DB_PORT", "POSTGRES_PORT"), "5432"),
    "database": (("DB_NAME", "POSTGRES_DB"), "heraclion"),
}


def _first_env(names: tuple[str, ...], default: str | None) -> str | None:
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return default


def get_database_url() -> URL:
    explicit = (os.getenv("DATABASE_URL") or "").strip()
    if explicit:
        return make_url(explicit)

    parts = {key: _first_env(names, default) for key, (names, default) in URL_PARTS.items()}
    try:
        port = int(parts.pop("port"))
    except ValueError as exc:
        raise ValueError("DB_PORT doit être un entier") from exc
    # URL.create échappe lui-même identifiants et mot de passe.
    return URL.create(DRIVERNAME, port=port, **parts)


__all__ = ["get_database_url"]
