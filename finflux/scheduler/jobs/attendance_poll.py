"""Attendance Poll Job - Refresca la asistencia del empleado."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from finflux.core.session import DashboardContext

logger = logging.getLogger(__name__)


async def attendance_poll_job(context: "DashboardContext") -> None:
    """Refresca los registros de asistencia del empleado logueado."""
    session_id = context.session.session_id
    if await context.expire_if_idle():
        return

    try:
        records = await context.attendance.list()
        logger.debug(f"Sesión {session_id}: {len(records)} registros de asistencia")
    except Exception as e:
        logger.error(f"Error en poll de asistencia ({session_id}): {e}")
