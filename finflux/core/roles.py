"""Roles de usuario y control de acceso por ruta."""

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    """Roles soportados por el backend."""

    OWNER = "owner"
    MANAGER = "manager"
    EMPLOYEE = "employee"


STAFF = frozenset({UserRole.OWNER, UserRole.MANAGER})
EVERYONE = frozenset(UserRole)


def normalize_role(raw: str | None) -> UserRole:
    """Normaliza el rol recibido del backend; desconocido -> employee."""
    value = str(raw or "").strip().lower()
    try:
        return UserRole(value)
    except ValueError:
        return UserRole.EMPLOYEE


@dataclass(frozen=True)
class NavItem:
    """Entrada del menú lateral."""

    title: str
    href: str
    roles: frozenset[UserRole]


# Orden del menú lateral
NAVIGATION: tuple[NavItem, ...] = (
    NavItem("Dashboard", "/dashboard", EVERYONE),
    NavItem("Employee Management", "/employees", STAFF),
    NavItem("Set Employee Duty", "/employee-set-duty", STAFF),
    NavItem("Tank Inventory", "/inventory", STAFF),
    NavItem("Sales & Collections", "/sales", STAFF),
    NavItem("Products", "/products", STAFF),
    NavItem("Borrowers", "/borrowers", STAFF),
    NavItem("Gun Info", "/guninfo", STAFF),
    NavItem("Analytics", "/analytics", STAFF),
    NavItem("Attendance", "/attendance", frozenset({UserRole.EMPLOYEE})),
    NavItem("My Profile", "/profile", frozenset({UserRole.EMPLOYEE})),
    NavItem("Reports", "/reports", STAFF),
    NavItem("Settings", "/settings", STAFF),
)

# Rutas que no aparecen en el menú pero están protegidas
_EXTRA_ROUTES: dict[str, frozenset[UserRole]] = {
    "/documents": STAFF,
    "/bank-deposits": STAFF,
    "/inventory/history": STAFF,
    "/sales/history": STAFF,
    "/borrowers/history": STAFF,
    "/daily-duties": frozenset({UserRole.EMPLOYEE}),
    "/employee-duty-info": frozenset({UserRole.EMPLOYEE}),
}

ROUTE_ROLES: dict[str, frozenset[UserRole]] = {
    **{item.href: item.roles for item in NAVIGATION},
    **_EXTRA_ROUTES,
}


def can_access(role: UserRole | str | None, route: str) -> bool:
    """Verifica si un rol puede ver una ruta. Rutas desconocidas se niegan."""
    allowed = ROUTE_ROLES.get(route.rstrip("/") or "/")
    if allowed is None or role is None:
        return False
    if not isinstance(role, UserRole):
        role = normalize_role(role)
    return role in allowed


def navigation_for(role: UserRole) -> list[dict[str, str]]:
    """Items de navegación visibles para un rol, en orden."""
    return [
        {"title": item.title, "href": item.href}
        for item in NAVIGATION
        if role in item.roles
    ]
