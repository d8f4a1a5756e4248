"""
Sesiones y contexto por usuario logueado.

Cada login crea una Session (identidad + organización) y un
DashboardContext con su cliente HTTP, snapshots, servicios, monitor de
alertas y tareas de polling. El logout desmonta todo.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from functools import partial
from typing import Any

import httpx

from finflux.config import get_settings
from finflux.core.roles import STAFF, UserRole, navigation_for, normalize_role
from finflux.scheduler.jobs import attendance_poll_job, inventory_poll_job
from finflux.scheduler.setup import PollingTask
from finflux.services.alerts import LowStockAlertTracker, LowStockMonitor
from finflux.services.backend import BackendClient
from finflux.services.notifications import Notifier
from finflux.services.resources import (
    AttendanceService,
    BankDepositService,
    CustomerService,
    DocumentService,
    EmployeeService,
    ExpenseService,
    InventoryLogService,
    ProductService,
    SalesHistoryService,
)
from finflux.services.store import SnapshotStore
from finflux.utils.errors import (
    AuthError,
    BackendError,
    FinfluxError,
    ValidationError,
)
from finflux.utils.mappers import to_optional_str

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class Session:
    """Usuario autenticado y su organización."""

    session_id: str
    user_id: str
    username: str
    name: str
    role: UserRole
    organization_id: str | None = None
    emp_id: str | None = None
    email: str | None = None
    token: str | None = None
    profile_image_url: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)

    def touch(self, now: datetime | None = None) -> None:
        self.last_activity = now or datetime.now()

    def is_expired(self, now: datetime | None = None) -> bool:
        """True si pasó el tiempo de inactividad permitido."""
        idle = (now or datetime.now()) - self.last_activity
        return idle > timedelta(minutes=settings.session_inactivity_minutes)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "username": self.username,
            "name": self.name,
            "role": self.role.value,
            "organization_id": self.organization_id,
            "emp_id": self.emp_id,
            "email": self.email,
            "profile_image_url": self.profile_image_url,
            "navigation": navigation_for(self.role),
        }


class DashboardContext:
    """
    Estado vivo de una sesión.

    Se crea en el login y se desmonta en el logout; nada de esto es
    global ni se comparte entre sesiones.
    """

    def __init__(
        self,
        session: Session,
        client: BackendClient | None = None,
        notifier: Notifier | None = None,
    ):
        self.session = session
        self.client = client or BackendClient(
            org_id=session.organization_id, token=session.token
        )
        self.store = SnapshotStore()

        self.employees = EmployeeService(self.client, self.store)
        self.products = ProductService(self.client, self.store)
        self.inventory_logs = InventoryLogService(self.client, self.store)
        self.sales_history = SalesHistoryService(self.client, self.store)
        self.expenses = ExpenseService(self.client, self.store)
        self.customers = CustomerService(self.client, self.store)
        self.documents = DocumentService(self.client, self.store)
        self.bank_deposits = BankDepositService(self.client, self.store)
        self.attendance = AttendanceService(
            self.client, self.store, session.emp_id, session.username
        )

        self.monitor = LowStockMonitor(LowStockAlertTracker(), notifier)
        self.tasks: list[PollingTask] = []
        # Lo asigna el SessionManager para desmontar vía logout
        self.on_expired: Callable[[], Awaitable[Any]] | None = None

    def start_polling(self) -> list[PollingTask]:
        """
        Registra el polling según el rol.

        Owner/manager: inventario + alertas. Employee: asistencia.
        """
        sid = self.session.session_id
        if self.session.role in STAFF:
            self.tasks.append(PollingTask(f"inventory:{sid}", inventory_poll_job, args=[self]))
        elif self.session.emp_id:
            self.tasks.append(PollingTask(f"attendance:{sid}", attendance_poll_job, args=[self]))

        for task in self.tasks:
            task.start()
        return self.tasks

    def stop_polling(self) -> None:
        for task in self.tasks:
            task.cancel()
        self.tasks.clear()

    async def expire_if_idle(self) -> bool:
        """
        Desmonta la sesión si venció por inactividad.

        Returns:
            True si la sesión expiró
        """
        if not self.session.is_expired():
            return False
        logger.info(f"Sesión expirada por inactividad: {self.session.username}")
        if self.on_expired is not None:
            await self.on_expired()
        else:
            await self.close()
        return True

    async def close(self) -> None:
        """Teardown: polling, alertas, snapshots y cliente HTTP."""
        self.stop_polling()
        self.monitor.reset()
        await self.store.clear()
        await self.client.close()


class SessionManager:
    """
    Registro de sesiones activas.

    Uso:
        manager = get_session_manager()
        session = await manager.login("ravi", "secret")
        context = manager.context(session.session_id)
        await manager.logout(session.session_id)
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        notifier: Notifier | None = None,
        enable_polling: bool = True,
    ):
        self._transport = transport
        self._notifier = notifier
        self._enable_polling = enable_polling
        self._sessions: dict[str, Session] = {}
        self._contexts: dict[str, DashboardContext] = {}

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    async def _authenticate(self, username: str, password: str) -> dict:
        client = BackendClient(transport=self._transport)
        try:
            data = await client.post_absolute(
                settings.login_url,
                json={"username": username, "password": password},
            )
        except BackendError as e:
            if e.status_code == 401:
                raise AuthError("Invalid credentials") from e
            raise
        finally:
            await client.close()

        return data if isinstance(data, dict) else {}

    async def _load_profile_image(self, context: DashboardContext) -> None:
        """Copia profileImageUrl del empleado; un fallo solo se loguea."""
        session = context.session
        try:
            employee = await context.employees.find_by_emp_id(session.emp_id)
        except FinfluxError as e:
            logger.warning(f"No se pudo obtener la foto de perfil de {session.username}: {e}")
            return
        if employee and employee.profile_image_url:
            session.profile_image_url = employee.profile_image_url

    async def login(self, username: str, password: str) -> Session:
        """
        Autentica contra el backend y monta el contexto de la sesión.

        Raises:
            ValidationError: usuario o contraseña vacíos
            AuthError: credenciales inválidas (401)
            BackendUnavailableError: timeout o backend caído
        """
        username = (username or "").strip()
        password = (password or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")

        data = await self._authenticate(username, password)

        session = Session(
            session_id=uuid.uuid4().hex,
            user_id=str(data.get("id") or username),
            username=username,
            name=str(data.get("username") or username),
            role=normalize_role(data.get("role")),
            organization_id=to_optional_str(data.get("organizationId")),
            emp_id=to_optional_str(data.get("empId")),
            email=to_optional_str(data.get("email")),
            token=to_optional_str(data.get("token")),
        )

        client = BackendClient(
            org_id=session.organization_id,
            token=session.token,
            transport=self._transport,
        )
        context = DashboardContext(session, client=client, notifier=self._notifier)
        context.on_expired = partial(self.logout, session.session_id)

        if session.organization_id and session.emp_id:
            await self._load_profile_image(context)

        self._sessions[session.session_id] = session
        self._contexts[session.session_id] = context
        if self._enable_polling:
            context.start_polling()

        logger.info(f"Login: {username} ({session.role.value}) org={session.organization_id}")
        return session

    async def get(self, session_id: str | None) -> Session | None:
        """
        Sesión viva o None.

        Una sesión expirada por inactividad se desmonta aquí.
        """
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.is_expired():
            logger.info(f"Sesión expirada por inactividad: {session.username}")
            await self.logout(session_id)
            return None
        session.touch()
        return session

    def context(self, session_id: str) -> DashboardContext | None:
        return self._contexts.get(session_id)

    async def logout(self, session_id: str) -> bool:
        """
        Cierra la sesión y desmonta su contexto.

        Returns:
            True si la sesión existía
        """
        session = self._sessions.pop(session_id, None)
        context = self._contexts.pop(session_id, None)
        if context is not None:
            await context.close()
        if session is not None:
            logger.info(f"Logout: {session.username}")
        return session is not None

    async def reap_expired(self) -> int:
        """
        Desmonta las sesiones vencidas aunque nadie las vuelva a pedir.

        Returns:
            Cantidad de sesiones cerradas
        """
        expired = [sid for sid, session in self._sessions.items() if session.is_expired()]
        for session_id in expired:
            logger.info(f"Sesión expirada por inactividad: {self._sessions[session_id].username}")
            await self.logout(session_id)
        if expired:
            logger.info(f"Sesiones expiradas cerradas: {len(expired)}")
        return len(expired)

    async def shutdown(self) -> None:
        """Cierra todas las sesiones."""
        for session_id in list(self._sessions):
            await self.logout(session_id)


# ==================== Singleton ====================

_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    """Obtiene el SessionManager global."""
    global _manager
    if _manager is None:
        _manager = SessionManager()
    return _manager
