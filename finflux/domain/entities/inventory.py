"""
Inventory Entities - Product (tanque) e InventoryLog.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from finflux.utils.mappers import (
    parse_datetime,
    to_bool,
    to_float,
    to_optional_float,
    to_optional_str,
    to_str,
)


@dataclass
class Product:
    """
    Entidad de Producto.

    Un producto de combustible con su tanque: capacidad y nivel actual.
    """

    id: str
    product_name: str
    tank_capacity: float = 0.0
    current_level: float = 0.0
    price: float | None = None
    metric: str | None = None  # L, Kg, etc.
    supplier: str | None = None
    description: str | None = None
    status: bool = True
    organization_id: str | None = None
    last_updated: datetime | None = None

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Product":
        return cls(
            id=to_str(data.get("id") or data.get("productId")),
            product_name=to_str(data.get("productName") or data.get("name")),
            tank_capacity=to_float(data.get("tankCapacity")),
            current_level=to_float(data.get("currentLevel")),
            price=to_optional_float(data.get("price")),
            metric=to_optional_str(data.get("metric")),
            supplier=to_optional_str(data.get("supplier")),
            description=to_optional_str(data.get("description")),
            status=to_bool(data.get("status", True)),
            organization_id=to_optional_str(data.get("organizationId")),
            last_updated=parse_datetime(data.get("lastUpdated")),
            _raw=data,
        )

    @property
    def is_active(self) -> bool:
        return self.status

    @property
    def alert_key(self) -> str:
        """Clave para deduplicar alertas (id, o nombre si no hay id)."""
        return self.id or self.product_name

    @property
    def fill_percentage(self) -> int:
        """Porcentaje de llenado redondeado; 0 si no hay capacidad."""
        if self.tank_capacity <= 0:
            return 0
        return round(100 * self.current_level / self.tank_capacity)

    def is_low_stock(self, threshold_percent: float) -> bool:
        """True si el tanque activo está bajo el umbral."""
        if not self.is_active or self.tank_capacity <= 0:
            return False
        return self.fill_percentage < threshold_percent

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "tank_capacity": self.tank_capacity,
            "current_level": self.current_level,
            "fill_percentage": self.fill_percentage,
            "price": self.price,
            "metric": self.metric,
            "is_active": self.is_active,
        }


@dataclass
class InventoryLog:
    """Snapshot histórico del nivel de un tanque."""

    id: str
    product_name: str
    inventory_id: str | None = None
    current_level: float | None = None
    capacity: float | None = None
    stock_value: float | None = None
    status: bool = True
    last_updated: datetime | None = None

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "InventoryLog":
        return cls(
            id=to_str(data.get("id")),
            product_name=to_str(data.get("productName")),
            inventory_id=to_optional_str(data.get("inventoryId")),
            current_level=to_optional_float(data.get("currentLevel")),
            capacity=to_optional_float(data.get("totalCapacity") or data.get("tankCapacity")),
            stock_value=to_optional_float(data.get("stockValue")),
            status=data.get("status") is not False,
            last_updated=parse_datetime(data.get("lastUpdated")),
            _raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "inventory_id": self.inventory_id,
            "product_name": self.product_name,
            "current_level": self.current_level,
            "capacity": self.capacity,
            "stock_value": self.stock_value,
            "status": self.status,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
