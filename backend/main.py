"""Application FastAPI du backend Heraclion (facturation, caisse, stock, tableau de bord)."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api import all_factures as all_factures_router
from backend.api import caisse as caisse_router
from backend.api import calculs as calculs_router
from backend.api import clients as clients_router
from backend.api import dashboard as dashboard_router
from backend.api import documents as documents_router
from backend.api import entreprises as entreprises_router
from backend.api import health as health_router
from backend.api import realtime as realtime_router
from backend.api import stock as stock_router
from backend.errors import install_error_handlers
from backend.jobs import dashboard_push
from backend.realtime import manager
from backend.settings import Settings
from core.caisse_seed import seed_caisse_if_empty
from core.data_repository import dispose_engine, is_missing_table_error

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:3000",
    "http://localhost:3001",
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _seed_caisse(settings: Settings) -> None:
    try:
        seed_caisse_if_empty(settings.caisse_seed_file)
    except Exception as exc:
        if not is_missing_table_error(exc):
            raise
        logger.warning("Table caisse absente, seed ignoré")


def _build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _seed_caisse(settings)
        dashboard_push.start(manager, settings.dashboard_push_interval)
        logger.info("Serveur Heraclion démarré (%s)", settings.app_env)
        try:
            yield
        finally:
            dashboard_push.stop()
            dispose_engine()
            logger.info("Serveur Heraclion arrêté")

    return lifespan


@lru_cache
def create_app() -> FastAPI:
    """Construit l'application FastAPI ainsi que tous les routeurs de domaine."""

    settings = Settings.load()
    _configure_logging(settings.log_level)

    app = FastAPI(
        title="Heraclion API",
        version="1.0.0",
        description="""
## API de facturation Heraclion

- **Documents** : factures, proformas, devis et leurs lignes
- **Factures** : vue unifiée documents / transport / non-transport
- **Caisse** : opérations, solde, archivage mensuel
- **Tableau de bord** : statistiques, activités récentes, alertes de stock
- **Temps réel** : mises à jour du tableau de bord via WebSocket (`/ws`)
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=_build_lifespan(settings),
    )

    allowed_origins = settings.cors_allowed_origins or DEFAULT_ALLOWED_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app, expose_details=settings.is_development)

    api_router = APIRouter(prefix="/api")
    api_router.include_router(health_router.router)
    api_router.include_router(all_factures_router.router)
    api_router.include_router(dashboard_router.router)
    api_router.include_router(calculs_router.router)
    api_router.include_router(documents_router.router)
    api_router.include_router(caisse_router.router)
    api_router.include_router(clients_router.router)
    api_router.include_router(entreprises_router.router)
    api_router.include_router(stock_router.router)
    app.include_router(api_router)

    app.include_router(realtime_router.router)

    @app.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = Settings.load()
    uvicorn.run("backend.main:app", host=_settings.host, port=_settings.port, log_level=_settings.log_level.lower())
