"""
Alertas de stock bajo con deduplicación por episodio.

Un tanque activo bajo el umbral genera una sola alerta mientras siga
bajo. Cuando se recupera (o desaparece del listado) se re-arma y la
próxima caída vuelve a alertar.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from finflux.config import get_settings
from finflux.domain.entities import Product
from finflux.services.notifications import Notifier, get_notifier, low_stock_message
from finflux.utils.errors import ErrorCategory, FinfluxError, log_error

logger = logging.getLogger(__name__)
settings = get_settings()

STATUS_SENT = "SMS sent"
STATUS_FAILED = "SMS failed"


@dataclass
class AlertPlan:
    """Resultado de evaluar un refresh."""

    to_send: list[Product] = field(default_factory=list)
    rearmed: list[str] = field(default_factory=list)
    suppressed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "to_send": [p.alert_key for p in self.to_send],
            "rearmed": list(self.rearmed),
            "suppressed": list(self.suppressed),
        }


class LowStockAlertTracker:
    """
    Conjunto de tanques ya alertados.

    Vive lo que dura la sesión y no se persiste.
    """

    def __init__(self, threshold_percent: float | None = None):
        self.threshold_percent = (
            threshold_percent
            if threshold_percent is not None
            else settings.low_stock_threshold_percent
        )
        self._alerted: set[str] = set()

    @property
    def alerted(self) -> frozenset[str]:
        return frozenset(self._alerted)

    def is_low(self, product: Product) -> bool:
        return product.is_low_stock(self.threshold_percent)

    def evaluate(self, tanks: list[Product]) -> AlertPlan:
        """
        Aplica la regla de transición sobre un snapshot de tanques.

        Actualiza el conjunto y devuelve qué alertar. No toca la red.
        """
        plan = AlertPlan()
        low_keys: set[str] = set()

        for tank in tanks:
            if not self.is_low(tank):
                continue
            key = tank.alert_key
            if not key:
                logger.warning("Tanque en stock bajo sin id ni nombre; no se alerta")
                continue
            if key in low_keys:
                continue
            low_keys.add(key)

            if key in self._alerted:
                plan.suppressed.append(key)
            else:
                plan.to_send.append(tank)
                self._alerted.add(key)

        for key in sorted(self._alerted - low_keys):
            self._alerted.discard(key)
            plan.rearmed.append(key)

        if plan.to_send or plan.rearmed:
            logger.debug(
                f"Alertas: {len(plan.to_send)} nuevas, {len(plan.rearmed)} re-armadas, "
                f"{len(plan.suppressed)} suprimidas"
            )
        return plan

    def reset(self) -> None:
        """Olvida todos los tanques alertados (logout)."""
        self._alerted.clear()


class LowStockMonitor:
    """
    Ejecuta el tracker y envía las alertas.

    Un envío fallido no se reintenta, no frena al resto de tanques y
    queda registrado como status del tanque.
    """

    def __init__(
        self,
        tracker: LowStockAlertTracker | None = None,
        notifier: Notifier | None = None,
    ):
        self.tracker = tracker or LowStockAlertTracker()
        self._notifier = notifier
        self.statuses: dict[str, str] = {}

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            self._notifier = get_notifier()
        return self._notifier

    async def refresh(self, products: list[Product]) -> AlertPlan:
        """
        Evalúa un snapshot de productos y notifica los tanques nuevos en bajo.

        Returns:
            AlertPlan del refresh
        """
        plan = self.tracker.evaluate(products)

        for key in plan.rearmed:
            self.statuses.pop(key, None)

        for tank in plan.to_send:
            key = tank.alert_key
            try:
                await self.notifier.send(low_stock_message(tank))
                self.statuses[key] = STATUS_SENT
                logger.info(f"Alerta de stock bajo enviada: {tank.product_name}")
            except FinfluxError as e:
                log_error(e, "low_stock_alert", ErrorCategory.NOTIFICATION, {"product": key})
                self.statuses[key] = f"{STATUS_FAILED}: {e.message}"

        return plan

    def reset(self) -> None:
        self.tracker.reset()
        self.statuses.clear()
