"""
FinFlux Console

Backend-for-frontend del dashboard de la estación: sesiones por
usuario, vistas agregadas y alertas de stock bajo.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from finflux.config import get_settings
from finflux.utils.errors import (
    AccessDeniedError,
    AuthError,
    BackendError,
    BackendUnavailableError,
    FinfluxError,
    ValidationError,
    log_error,
)
from finflux.utils.notices import notice_from_error

# Configurar logging
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle de la aplicación."""
    logger.info("=" * 50)
    logger.info("Iniciando FinFlux Console")
    logger.info("=" * 50)

    # ==================== STARTUP ====================

    if not settings.api_base_url:
        if settings.is_development:
            logger.error("API_BASE_URL no configurada; las llamadas al backend fallarán")
        else:
            logger.warning("API_BASE_URL no configurada")

    from finflux.scheduler.setup import start_scheduler
    start_scheduler()

    from finflux.core.session import get_session_manager
    from finflux.scheduler.setup import PollingTask
    reaper = PollingTask(
        "sessions:reaper",
        get_session_manager().reap_expired,
        settings.session_reap_interval_seconds,
    )
    reaper.start(run_immediately=False)

    logger.info(f"Canal de alertas: {settings.alert_channel}")
    logger.info("FinFlux Console listo!")

    yield

    # ==================== SHUTDOWN ====================

    logger.info("Deteniendo FinFlux Console...")

    reaper.cancel()
    await get_session_manager().shutdown()

    from finflux.scheduler.setup import shutdown_scheduler
    await shutdown_scheduler()

    logger.info("FinFlux Console detenido.")


# Crear aplicación FastAPI
app = FastAPI(
    title="FinFlux Console",
    description="Dashboard de estación de combustible: inventario, ventas, depósitos y asistencia",
    version="1.0.0",
    lifespan=lifespan,
)


# ==================== ERRORS ====================


def status_for(error: FinfluxError) -> int:
    """Status HTTP para cada tipo de error."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, AuthError):
        return 401
    if isinstance(error, AccessDeniedError):
        return 403
    if isinstance(error, BackendUnavailableError):
        return 503
    if isinstance(error, BackendError) and error.status_code == 404:
        return 404
    return 502


@app.exception_handler(FinfluxError)
async def finflux_error_handler(request: Request, exc: FinfluxError):
    """Cualquier error de dominio se devuelve como notice."""
    status_code = status_for(exc)
    if status_code >= 500:
        log_error(exc, f"{request.method} {request.url.path}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={"notice": notice_from_error(exc).to_dict()},
    )


# ==================== ROUTES ====================

from finflux.api import dashboard_router, session_router  # noqa: E402

app.include_router(session_router)
app.include_router(dashboard_router)


@app.get("/health")
async def health_check():
    """Health check básico."""
    from finflux.core.session import get_session_manager
    from finflux.scheduler.setup import get_job_status

    return {
        "status": "healthy",
        "service": "finflux-console",
        "environment": settings.app_env,
        "sessions": get_session_manager().active_count,
        "polling_jobs": len(get_job_status()),
    }


# ==================== DEV MODE ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "finflux.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
