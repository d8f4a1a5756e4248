"""Dependencias de FastAPI: sesión actual y control por rol."""

import logging

from fastapi import Depends, Header

from finflux.core.roles import ROUTE_ROLES, UserRole
from finflux.core.session import DashboardContext, Session, SessionManager, get_session_manager
from finflux.utils.errors import AccessDeniedError, AuthError

logger = logging.getLogger(__name__)


def session_manager() -> SessionManager:
    return get_session_manager()


async def current_session(
    x_session_id: str | None = Header(default=None),
    manager: SessionManager = Depends(session_manager),
) -> Session:
    """Sesión del header X-Session-Id; 401 si no existe o expiró."""
    session = await manager.get(x_session_id)
    if session is None:
        raise AuthError("Session expired. Please login again.")
    return session


async def current_context(
    session: Session = Depends(current_session),
    manager: SessionManager = Depends(session_manager),
) -> DashboardContext:
    context = manager.context(session.session_id)
    if context is None:
        raise AuthError("Session expired. Please login again.")
    return context


def require_roles(*roles: UserRole):
    """
    Dependencia que limita una ruta a ciertos roles.

    Uso:
        @router.get("/inventory", dependencies=[Depends(require_roles(*STAFF))])
    """
    allowed = frozenset(roles)

    async def checker(session: Session = Depends(current_session)) -> Session:
        if session.role not in allowed:
            logger.info(f"Acceso denegado a {session.username} ({session.role.value})")
            raise AccessDeniedError("You do not have access to this page.")
        return session

    return checker


def require_route(route: str):
    """require_roles con los roles de una ruta del dashboard."""
    return require_roles(*ROUTE_ROLES[route])
