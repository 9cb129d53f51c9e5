"""Configuration applicative backend (API FastAPI) basée sur core.settings.AppSettings."""

from __future__ import annotations

import os
from dataclasses import dataclass

from core.settings import AppSettings as CoreSettings, _int_env


@dataclass(frozen=True)
class Settings(CoreSettings):
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    dashboard_push_interval: int = 30
    caisse_seed_file: str | None = None

    @staticmethod
    def load() -> "Settings":
        core = CoreSettings.load()
        return Settings(
            app_env=core.app_env,
            database_url=core.database_url,
            db_pool_size=core.db_pool_size,
            db_pool_max_overflow=core.db_pool_max_overflow,
            cors_allowed_origins=core.cors_allowed_origins,
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            host=os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0",
            port=_int_env("PORT", 3000),
            dashboard_push_interval=max(0, _int_env("DASHBOARD_PUSH_INTERVAL", 30)),
            caisse_seed_file=(os.getenv("CAISSE_SEED_FILE") or "").strip() or None,
        )
