"""Inventory Poll Job - Refresca tanques y dispara alertas de stock bajo."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from finflux.core.session import DashboardContext

logger = logging.getLogger(__name__)


async def inventory_poll_job(context: "DashboardContext") -> None:
    """
    Refresca productos y corre el monitor de stock bajo.

    Un fallo deja el snapshot anterior y se reintenta en el próximo tick.
    Una sesión vencida se desmonta y el job deja de existir.
    """
    session_id = context.session.session_id
    if await context.expire_if_idle():
        return

    logger.debug(f"Poll de inventario para sesión {session_id}")

    try:
        products = await context.products.list()
        plan = await context.monitor.refresh(products)
        if plan.to_send:
            logger.info(
                f"Sesión {session_id}: {len(plan.to_send)} tanques en stock bajo notificados"
            )
    except Exception as e:
        logger.error(f"Error en poll de inventario ({session_id}): {e}")
