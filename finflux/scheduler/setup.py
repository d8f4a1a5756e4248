"""Configuración del scheduler con APScheduler."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import pytz
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from finflux.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Scheduler global
_scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    """Obtiene la instancia del scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(
            timezone=settings.tz,
            job_defaults={
                "coalesce": True,  # Combinar ejecuciones perdidas
                "max_instances": 1,  # Un poll a la vez por sesión
                "misfire_grace_time": settings.poll_interval_seconds,
            },
        )
    return _scheduler


def start_scheduler() -> AsyncIOScheduler:
    """Arranca el scheduler si no está corriendo."""
    scheduler = get_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler iniciado")
    return scheduler


async def shutdown_scheduler() -> None:
    """Detiene el scheduler."""
    scheduler = get_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler detenido")


class PollingTask:
    """
    Job de intervalo cancelable, atado a la vida de una sesión.

    Uso:
        task = PollingTask("inventory:abc", inventory_poll_job, 30, args=[context])
        task.start()
        ...
        task.cancel()
    """

    def __init__(
        self,
        job_id: str,
        func: Callable[..., Awaitable[Any]],
        interval_seconds: int | None = None,
        args: list[Any] | None = None,
        scheduler: AsyncIOScheduler | None = None,
    ):
        self.job_id = job_id
        self.func = func
        self.interval_seconds = interval_seconds or settings.poll_interval_seconds
        self.args = args or []
        self._scheduler = scheduler

    @property
    def scheduler(self) -> AsyncIOScheduler:
        return self._scheduler or get_scheduler()

    @property
    def active(self) -> bool:
        """True si el job sigue registrado."""
        return self.scheduler.get_job(self.job_id) is not None

    def start(self, run_immediately: bool = True) -> None:
        """Registra el job; la primera ejecución es inmediata por defecto."""
        kwargs: dict[str, Any] = {}
        if run_immediately:
            kwargs["next_run_time"] = datetime.now(pytz.timezone(settings.tz))

        self.scheduler.add_job(
            self.func,
            IntervalTrigger(seconds=self.interval_seconds),
            args=self.args,
            id=self.job_id,
            name=self.job_id,
            replace_existing=True,
            **kwargs,
        )
        logger.info(f"Polling iniciado: {self.job_id} cada {self.interval_seconds}s")

    def cancel(self) -> bool:
        """
        Elimina el job. Cancelar dos veces no falla.

        Returns:
            True si había un job que eliminar
        """
        try:
            self.scheduler.remove_job(self.job_id)
        except JobLookupError:
            return False
        logger.info(f"Polling cancelado: {self.job_id}")
        return True


def get_job_status() -> list[dict]:
    """Obtiene el estado de todos los jobs."""
    scheduler = get_scheduler()
    jobs = []

    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": next_run.isoformat() if (next_run := getattr(job, "next_run_time", None)) else None,
            "trigger": str(job.trigger),
        })

    return jobs
