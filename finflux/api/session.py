"""
Session API endpoints.

Login y logout contra el backend de FinFlux.
"""

import logging

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

from finflux.api.deps import session_manager
from finflux.core.session import SessionManager
from finflux.utils.notices import success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


class LoginRequest(BaseModel):
    """Credenciales de login."""
    username: str
    password: str


class NavItemModel(BaseModel):
    title: str
    href: str


class NoticeModel(BaseModel):
    title: str
    description: str = ""
    variant: str = "default"


class LoginResponse(BaseModel):
    """Sesión creada."""
    session_id: str
    username: str
    name: str
    role: str
    organization_id: str | None = None
    emp_id: str | None = None
    profile_image_url: str | None = None
    navigation: list[NavItemModel]
    notice: NoticeModel


class LogoutResponse(BaseModel):
    status: str
    notice: NoticeModel


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    manager: SessionManager = Depends(session_manager),
):
    """Autentica y devuelve el id de sesión para el header X-Session-Id."""
    session = await manager.login(body.username, body.password)
    return LoginResponse(
        **session.to_dict(),
        notice=success("Welcome back", f"Signed in as {session.name}").to_dict(),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    x_session_id: str | None = Header(default=None),
    manager: SessionManager = Depends(session_manager),
):
    """Cierra la sesión; es idempotente."""
    existed = await manager.logout(x_session_id) if x_session_id else False
    return LogoutResponse(
        status="logged_out" if existed else "no_session",
        notice=success("Logged out").to_dict(),
    )
