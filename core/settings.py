"""Configuration centralisée (backend core) avec validation minimale."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} doit être un entier (reçu: {raw!r})") from exc


def _app_env() -> str:
    raw = os.getenv("APP_ENV") or os.getenv("NODE_ENV") or os.getenv("ENV") or "production"
    return raw.strip().lower()


@dataclass(frozen=True)
class AppSettings:
    app_env: str = "production"
    database_url: str = ""
    db_pool_size: int = 10
    db_pool_max_overflow: int = 20
    cors_allowed_origins: list[str] = field(default_factory=list)

    @property
    def is_development(self) -> bool:
        return self.app_env in {"development", "dev"}

    @staticmethod
    def load() -> "AppSettings":
        load_dotenv()
        cors_raw = os.getenv("CORS_ALLOWED_ORIGINS")
        cors = [entry.strip() for entry in cors_raw.split(",") if entry.strip()] if cors_raw else []
        return AppSettings(
            app_env=_app_env(),
            database_url=os.getenv("DATABASE_URL", "").strip(),
            db_pool_size=_int_env("DB_POOL_SIZE", 10),
            db_pool_max_overflow=_int_env("DB_POOL_MAX_OVERFLOW", 20),
            cors_allowed_origins=cors,
        )
