"""
Mappers centralizados - Coerción de campos de los DTOs del backend.

Los DTOs llegan con tipos inconsistentes (números como string, booleanos
como "true", fechas con o sin hora). Todo se normaliza aquí.
"""

from datetime import date, datetime
from typing import Any

import pytz


def to_float(value: Any, default: float = 0.0) -> float:
    """Número o default si falta o no es numérico."""
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_optional_float(value: Any) -> float | None:
    """Número o None si falta."""
    if value is None or value == "":
        return None
    return to_float(value)


def to_bool(value: Any) -> bool:
    """Acepta True/"true" (cualquier capitalización)."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def to_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def to_optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def parse_datetime(value: Any, tz_name: str = "Asia/Kolkata") -> datetime | None:
    """
    Parsea fechas ISO del backend.

    Acepta "2024-11-28", "2024-11-28T10:30:00", "...Z" y milisegundos.
    Los valores con zona se convierten a la zona del negocio sin tzinfo;
    los valores sin zona ya vienen en hora local.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(text[:10])
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(pytz.timezone(tz_name)).replace(tzinfo=None)
    return parsed


def parse_date(value: Any) -> date | None:
    """Parsea solo la parte de fecha (día calendario)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def format_date(value: date | None) -> str | None:
    """Fecha a "YYYY-MM-DD" para payloads."""
    return value.isoformat() if value else None
