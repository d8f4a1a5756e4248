"""Snapshots en memoria de las colecciones obtenidas del backend."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Snapshot(Generic[T]):
    """Último estado conocido de un recurso."""

    data: list[T] = field(default_factory=list)
    fetched_at: datetime | None = None
    last_error: str | None = None
    hits: int = 0

    @property
    def is_loaded(self) -> bool:
        """True si hubo al menos un fetch exitoso."""
        return self.fetched_at is not None

    def access(self) -> list[T]:
        """Registra un acceso y retorna los datos."""
        self.hits += 1
        return self.data


class SnapshotStore:
    """
    Store por sesión con el último snapshot de cada recurso.

    Un refresh fallido registra el error pero conserva los datos
    anteriores, para que la vista siga mostrando algo.

    Uso:
        store = SnapshotStore()
        await store.put("products", products)
        products = await store.get("products")
    """

    def __init__(self):
        self._snapshots: dict[str, Snapshot] = {}
        self._lock = asyncio.Lock()
        self._stats = {
            "refreshes": 0,
            "failures": 0,
        }

    async def get(self, key: str) -> list[Any]:
        """
        Obtiene los datos de un recurso.

        Returns:
            Lista (vacía si nunca se cargó)
        """
        async with self._lock:
            snapshot = self._snapshots.get(key)
            if snapshot is None:
                return []
            return snapshot.access()

    async def snapshot(self, key: str) -> Snapshot:
        """Obtiene el snapshot completo (datos + metadata)."""
        async with self._lock:
            return self._snapshots.setdefault(key, Snapshot())

    async def put(self, key: str, data: list[Any]) -> None:
        """Reemplaza el snapshot de un recurso."""
        async with self._lock:
            self._snapshots[key] = Snapshot(data=list(data), fetched_at=datetime.now())
            self._stats["refreshes"] += 1

    async def record_error(self, key: str, error: Exception | str) -> None:
        """Registra un refresh fallido sin tocar los datos."""
        async with self._lock:
            snapshot = self._snapshots.setdefault(key, Snapshot())
            snapshot.last_error = str(error)
            self._stats["failures"] += 1
        logger.debug(f"Refresh fallido para {key}, se conservan datos previos")

    async def clear(self) -> int:
        """
        Limpia todo el store.

        Returns:
            Número de recursos eliminados
        """
        async with self._lock:
            count = len(self._snapshots)
            self._snapshots.clear()
            return count

    def get_stats(self) -> dict[str, Any]:
        """Obtiene estadísticas del store."""
        return {
            "resources": len(self._snapshots),
            "refreshes": self._stats["refreshes"],
            "failures": self._stats["failures"],
        }
