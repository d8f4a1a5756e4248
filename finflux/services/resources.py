"""
Servicios de recursos - Fetch y mutaciones contra el backend.

Cada servicio conoce su colección (/products, /bank-deposits, ...),
cómo decodificarla y dónde guardar el último snapshot. Las mutaciones
refrescan la colección al terminar.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, time
from typing import Any, Generic, TypeVar

import pytz

from finflux.config import get_settings
from finflux.domain.entities import (
    AttendanceRecord,
    BankDeposit,
    BorrowerTransaction,
    Customer,
    Document,
    Employee,
    Expense,
    InventoryLog,
    Product,
    SaleRecord,
)
from finflux.domain.validation import (
    validate_date_range,
    validate_deposit,
    validate_document,
    validate_expense,
    validate_product,
)
from finflux.services.backend import BackendClient
from finflux.services.decoding import decode_collection, decode_url
from finflux.services.signed_urls import normalize_signed_url
from finflux.services.store import SnapshotStore
from finflux.utils.errors import (
    ErrorCategory,
    FinfluxError,
    UploadError,
    ValidationError,
    log_error,
)
from finflux.utils.formatting import local_today, to_local_datetime
from finflux.utils.mappers import format_date

logger = logging.getLogger(__name__)
settings = get_settings()

T = TypeVar("T")
R = TypeVar("R")


class ResourceService(Generic[T]):
    """
    Servicio genérico para una colección del backend.

    Uso:
        products = ResourceService(client, store, "products", "/products", Product.from_api)
        items = await products.list()
        await products.create({"productName": "Diesel"})
    """

    def __init__(
        self,
        client: BackendClient,
        store: SnapshotStore,
        key: str,
        path: str,
        mapper: Callable[[dict[str, Any]], T],
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ):
        self.client = client
        self.store = store
        self.key = key
        self.path = path
        self.mapper = mapper
        self.params = params
        self.timeout = timeout
        self._in_flight = False

    @property
    def busy(self) -> bool:
        """True mientras hay una mutación pendiente."""
        return self._in_flight

    def _decode(self, payload: Any) -> list[T]:
        return [self.mapper(item) for item in decode_collection(payload)]

    async def _fetch(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        key: str | None = None,
    ) -> list[T]:
        """
        Fetch + decode + snapshot.

        Un fallo de red se registra en el store (los datos previos se
        conservan) y se re-lanza al caller.
        """
        key = key or self.key
        try:
            payload = await self.client.get_json(path, params=params, timeout=self.timeout)
        except FinfluxError as e:
            log_error(e, f"fetch_{key}", ErrorCategory.BACKEND)
            await self.store.record_error(key, e)
            raise

        records = self._decode(payload)
        await self.store.put(key, records)
        logger.debug(f"{key}: {len(records)} registros")
        return records

    async def list(self, refresh: bool = True) -> list[T]:
        """
        Lista la colección.

        Args:
            refresh: False para usar el snapshot si ya está cargado
        """
        if not refresh:
            snapshot = await self.store.snapshot(self.key)
            if snapshot.is_loaded:
                return snapshot.access()
        return await self._fetch(self.path, params=self.params)

    async def cached(self) -> list[T]:
        """Último snapshot sin tocar la red."""
        return await self.store.get(self.key)

    async def _refetch(self) -> None:
        try:
            await self.list()
        except FinfluxError as e:
            logger.warning(f"Refetch de {self.key} falló tras mutación: {e}")

    async def _mutate(
        self,
        call: Callable[[], Awaitable[R]],
        refetch: Callable[[], Awaitable[Any]] | None = None,
    ) -> R:
        """
        Ejecuta una mutación con guard de envío único y luego refresca.

        Raises:
            ValidationError: si ya hay otra mutación en curso
        """
        if self._in_flight:
            raise ValidationError("Request already in progress")

        self._in_flight = True
        try:
            result = await call()
        finally:
            self._in_flight = False

        await (refetch or self._refetch)()
        return result

    async def create(self, payload: dict[str, Any]) -> Any:
        return await self._mutate(lambda: self.client.post_json(self.path, payload))

    async def update(self, item_id: str, payload: dict[str, Any]) -> Any:
        return await self._mutate(
            lambda: self.client.put_json(f"{self.path}/{item_id}", payload)
        )

    async def delete(self, item_id: str) -> Any:
        if not item_id:
            raise ValidationError("Invalid record id", field="id")
        return await self._mutate(lambda: self.client.delete(f"{self.path}/{item_id}"))


# ==================== Catálogo ====================


class EmployeeService(ResourceService[Employee]):
    def __init__(self, client: BackendClient, store: SnapshotStore):
        super().__init__(
            client, store, "employees", "/employees", Employee.from_api,
            params={"page": 0, "size": 100},
        )

    async def find_by_emp_id(self, emp_id: str) -> Employee | None:
        for employee in await self.list():
            if employee.emp_id == emp_id:
                return employee
        return None


class ProductService(ResourceService[Product]):
    def __init__(self, client: BackendClient, store: SnapshotStore):
        super().__init__(
            client, store, "products", "/products", Product.from_api,
            timeout=settings.long_timeout,
        )

    async def save(self, form: dict[str, Any], product_id: str | None = None) -> Any:
        payload = validate_product(form)
        payload["organizationId"] = self.client.org_id
        payload["lastUpdated"] = datetime.now().isoformat()
        if product_id:
            return await self.update(product_id, payload)
        return await self.create(payload)


class InventoryLogService(ResourceService[InventoryLog]):
    def __init__(self, client: BackendClient, store: SnapshotStore):
        super().__init__(
            client, store, "inventory_logs", "/inventory-logs", InventoryLog.from_api,
            timeout=settings.request_timeout,
        )

    async def search(
        self,
        product_name: str | None = None,
        from_date: Any = None,
        to_date: Any = None,
    ) -> list[InventoryLog]:
        """
        Historial filtrado.

        Con producto y sin fechas se usa /by-product.
        """
        start, end = validate_date_range(from_date, to_date)

        params: dict[str, Any] = {}
        if product_name:
            params["productName"] = product_name
        if start:
            params["fromDate"] = format_date(start)
        if end:
            params["toDate"] = format_date(end)

        path = self.path
        if product_name and not start and not end:
            path = f"{self.path}/by-product"

        return await self._fetch(path, params=params or None)


class SalesHistoryService(ResourceService[SaleRecord]):
    def __init__(self, client: BackendClient, store: SnapshotStore):
        super().__init__(
            client, store, "sales_history", "/sale-history/by-date", SaleRecord.from_api,
        )

    async def by_date(self, start: date, end: date) -> list[SaleRecord]:
        """Ventas entre el inicio del día start y el fin del día end."""
        validate_date_range(start, end)
        params = {
            "from": datetime.combine(start, time.min).isoformat(),
            "to": datetime.combine(end, time(23, 59, 59)).isoformat(),
        }
        return await self._fetch(self.path, params=params)


class ExpenseService(ResourceService[Expense]):
    def __init__(self, client: BackendClient, store: SnapshotStore):
        super().__init__(client, store, "expenses", "/expenses", Expense.from_api)

    async def submit(self, form: dict[str, Any]) -> Any:
        return await self.create(validate_expense(form))


class CustomerService(ResourceService[Customer]):
    def __init__(self, client: BackendClient, store: SnapshotStore):
        super().__init__(
            client, store, "customers", "/customers", Customer.from_api,
            timeout=settings.long_timeout,
        )

    async def history(self) -> list[BorrowerTransaction]:
        """Historial de todos los prestatarios (paginado por el backend)."""
        key = "customer_history"
        try:
            payload = await self.client.get_json(
                "/customers/history/all",
                params={"page": 0, "size": 200},
                timeout=settings.long_timeout,
            )
        except FinfluxError as e:
            log_error(e, "fetch_customer_history", ErrorCategory.BACKEND)
            await self.store.record_error(key, e)
            raise

        records = [BorrowerTransaction.from_api(item) for item in decode_collection(payload)]
        await self.store.put(key, records)
        return records


# ==================== Archivos ====================


class DocumentService(ResourceService[Document]):
    def __init__(self, client: BackendClient, store: SnapshotStore):
        super().__init__(
            client, store, "documents", "/documents", Document.from_api,
            params={"page": 0, "size": 50},
        )

    async def upload_file(self, filename: str, content: bytes, content_type: str) -> str:
        """
        Sube el archivo al host de assets.

        Returns:
            secure_url del archivo
        """
        if not settings.cloudinary_upload_url or not settings.cloudinary_upload_preset:
            raise UploadError("Asset upload is not configured")

        payload = await self.client.upload_external(
            settings.cloudinary_upload_url,
            filename,
            content,
            data={"upload_preset": settings.cloudinary_upload_preset},
            content_type=content_type,
        )
        url = decode_url(payload, "secure_url", "url")
        if not url:
            raise UploadError("Upload did not return a file URL")
        logger.info(f"Documento subido: {filename}")
        return url

    async def lifecycle_status(self, document_id: str) -> dict[str, Any]:
        """Estado de vigencia que calcula el backend para un documento."""
        if not document_id:
            raise ValidationError("Invalid record id", field="id")
        payload = await self.client.get_json(f"{self.path}/{document_id}/lifecycle-status")
        if isinstance(payload, dict):
            return payload
        return {"status": payload}

    async def save(self, form: dict[str, Any], document_id: str | None = None) -> Any:
        payload = validate_document(form)
        payload["organizationId"] = self.client.org_id
        if document_id:
            return await self.update(document_id, payload)
        return await self.create(payload)


class BankDepositService(ResourceService[BankDeposit]):
    def __init__(self, client: BackendClient, store: SnapshotStore):
        super().__init__(
            client, store, "bank_deposits", "/bank-deposits", BankDeposit.from_api,
            params={"page": 0, "size": 50},
        )

    async def upload_receipt(self, filename: str, content: bytes, content_type: str) -> str:
        payload = await self.client.upload_file(
            f"{self.path}/upload", filename, content, content_type
        )
        url = decode_url(payload, "fileUrl", "url")
        if not url:
            raise UploadError("Upload did not return a file URL")
        return url

    async def submit(
        self,
        form: dict[str, Any],
        receipt: tuple[str, bytes, str] | None = None,
        deposit_id: str | None = None,
    ) -> Any:
        """
        Crea o actualiza un depósito.

        Se valida primero; el comprobante (filename, content, content_type)
        se sube solo si el formulario es válido.
        """
        payload = validate_deposit(form)
        if receipt is not None:
            payload["receiptUrl"] = await self.upload_receipt(*receipt)
        payload["organizationId"] = self.client.org_id

        if deposit_id:
            return await self.update(deposit_id, payload)
        return await self.create(payload)

    async def _find(self, deposit_id: str) -> BankDeposit | None:
        for deposit in await self.cached():
            if deposit.id == deposit_id:
                return deposit
        return None

    async def download_url(self, deposit_id: str, duration_seconds: int = 60) -> str:
        """
        URL de descarga del comprobante.

        Pide una URL firmada y la repara; si falla, usa receiptUrl.

        Raises:
            UploadError: si no hay ninguna URL disponible
        """
        deposit = await self._find(deposit_id)
        target = deposit.receipt_url if deposit else None

        try:
            payload = await self.client.get_download_url(
                f"{self.path}/{deposit_id}/download-url", duration_seconds
            )
            signed = decode_url(payload, "url")
            if signed:
                target = normalize_signed_url(signed) or signed
        except FinfluxError as e:
            logger.warning(f"URL firmada falló para depósito {deposit_id}, usando receiptUrl: {e}")

        if not target:
            raise UploadError("No download URL available", details={"deposit_id": deposit_id})
        return target


# ==================== Asistencia ====================


class AttendanceService(ResourceService[AttendanceRecord]):
    """
    Asistencia del empleado logueado.

    Las marcas se envían como hora local IST sin zona.
    """

    def __init__(
        self,
        client: BackendClient,
        store: SnapshotStore,
        emp_id: str | None,
        username: str | None,
    ):
        super().__init__(client, store, "attendance", "/attendance", AttendanceRecord.from_api)
        self.emp_id = emp_id
        self.username = username

    def _decode(self, payload: Any) -> list[AttendanceRecord]:
        records = super()._decode(payload)
        records.sort(key=lambda r: r.check_in or datetime.min, reverse=True)
        return records

    async def list(self, refresh: bool = True) -> list[AttendanceRecord]:
        """Registros del empleado, más reciente primero."""
        if not self.emp_id:
            raise ValidationError("Missing employee id. Please login again.", field="empId")
        if not refresh:
            snapshot = await self.store.snapshot(self.key)
            if snapshot.is_loaded:
                return snapshot.access()
        return await self._fetch(f"{self.path}/employee/{self.emp_id}")

    async def today(self, today: date | None = None) -> AttendanceRecord | None:
        """Registro cuyo check-in es hoy (None si no hay)."""
        today = today or local_today(settings.tz)
        for record in await self.list(refresh=False):
            if record.is_for_day(today):
                return record
        return None

    def _now(self) -> str:
        return to_local_datetime(datetime.now(pytz.utc), settings.tz)

    async def check_in(self, today: date | None = None) -> Any:
        if not self.emp_id or not self.username or not self.client.org_id:
            raise ValidationError("Missing required information. Please login again.")
        if await self.today(today):
            raise ValidationError("You have already checked in today.")

        payload = {
            "organizationId": self.client.org_id,
            "empId": self.emp_id,
            "username": self.username,
            "checkIn": self._now(),
        }
        return await self.create(payload)

    async def break_in(self, today: date | None = None) -> Any:
        record = await self.today(today)
        if record is None:
            raise ValidationError("Please check in first before taking a break.")
        if not record.can_break_in:
            if record.has_checked_out:
                raise ValidationError("You have already checked out for today.")
            raise ValidationError("You are already on a break. Please end your break first.")
        return await self.update(record.id, {"breakIn": self._now()})

    async def break_out(self, today: date | None = None) -> Any:
        record = await self.today(today)
        if record is None:
            raise ValidationError("No active attendance record found.")
        if not record.can_break_out:
            if record.has_checked_out:
                raise ValidationError("You have already checked out for today.")
            raise ValidationError("You are not on a break.")
        return await self.update(record.id, {"breakOut": self._now()})

    async def check_out(self, today: date | None = None) -> Any:
        record = await self.today(today)
        if record is None:
            raise ValidationError("Please check in first before checking out.")
        if record.has_checked_out:
            raise ValidationError("You have already checked out for today.")
        if record.is_on_break:
            raise ValidationError("Please end your break before checking out.")
        return await self.update(record.id, {"checkOut": self._now()})
