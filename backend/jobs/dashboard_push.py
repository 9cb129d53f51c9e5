"""Diffusion périodique de l'instantané du tableau de bord (APScheduler)."""

from __future__ import annotations

import logging
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, JobExecutionEvent
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool

from backend.realtime import ConnectionManager
from backend.services import dashboard as dashboard_service

logger = logging.getLogger(__name__)

JOB_ID = "dashboard:push"
MESSAGE_TYPE = "dashboard-update"

_scheduler: AsyncIOScheduler | None = None


def build_message(snapshot: dict[str, Any]) -> dict[str, Any]:
    return jsonable_encoder({"type": MESSAGE_TYPE, "data": snapshot})


async def push_dashboard_update(manager: ConnectionManager) -> int:
    """Calcule l'instantané et le diffuse ; retourne le nombre de clients servis."""
    if not len(manager):
        logger.debug("Aucun client WebSocket, diffusion ignorée")
        return 0
    snapshot = await run_in_threadpool(dashboard_service.build_push_snapshot)
    delivered = await manager.broadcast(build_message(snapshot))
    logger.debug("Mise à jour du tableau de bord envoyée à %s clients", delivered)
    return delivered


def _on_job_error(event: JobExecutionEvent) -> None:
    logger.error("Échec de la diffusion du tableau de bord (%s): %s", event.job_id, event.exception)


def start(manager: ConnectionManager, interval: int = 30) -> AsyncIOScheduler | None:
    """Démarre le planificateur ; un intervalle nul désactive la diffusion."""
    global _scheduler

    if interval <= 0:
        logger.info("Diffusion du tableau de bord désactivée")
        return None
    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        jobstores={"default": MemoryJobStore()},
        executors={"default": AsyncIOExecutor()},
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": interval,
        },
    )
    _scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
    _scheduler.add_job(
        push_dashboard_update,
        trigger=IntervalTrigger(seconds=interval),
        args=[manager],
        id=JOB_ID,
        replace_existing=True,
    )
    _scheduler.start()
    logger.info("Diffusion du tableau de bord toutes les %s secondes", interval)
    return _scheduler


def stop() -> None:
    global _scheduler

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Planificateur du tableau de bord arrêté")


__all__ = ["JOB_ID", "MESSAGE_TYPE", "build_message", "push_dashboard_update", "start", "stop"]
