"""
Utilidades de formato - moneda, tamaños, fechas locales.

Centraliza el formateo que antes se repetía en cada vista.
"""

import math
from datetime import date, datetime

import pytz

RUPEE = "₹"


def group_indian(value: float, decimals: int = 0) -> str:
    """Agrupa dígitos al estilo en-IN: 1234567 -> 12,34,567."""
    text = f"{abs(value):.{decimals}f}"
    integer, _, fraction = text.partition(".")

    # Últimos 3 dígitos, luego grupos de 2
    head, tail = integer[:-3], integer[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    groups.append(tail)

    result = ",".join(groups)
    if fraction:
        result = f"{result}.{fraction}"
    return result


def format_inr(amount: float | int | None, decimals: int = 0) -> str:
    """
    Formatea un monto con agrupación india (lakhs/crores).

    Args:
        amount: Monto a formatear
        decimals: Decimales a mostrar

    Returns:
        String como "₹8,45,000"
    """
    value = float(amount or 0)
    sign = "-" if value < 0 else ""
    return f"{sign}{RUPEE}{group_indian(value, decimals)}"


def format_bytes(size: int | None) -> str:
    """Formatea bytes a B/KB/MB/GB con 2 decimales."""
    if not size:
        return "0 B"

    units = ["B", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, index), 2)
    # Quitar ceros finales: 1.50 -> 1.5, 2.00 -> 2
    return f"{value:g} {units[index]}"


def format_liters(liters: float | int | None) -> str:
    """Formatea litros con agrupación india."""
    return f"{group_indian(float(liters or 0))} L"


def to_local_datetime(moment: datetime, tz_name: str = "Asia/Kolkata") -> str:
    """
    Convierte un datetime a LocalDateTime del backend (sin zona).

    Returns:
        String "YYYY-MM-DDTHH:MM:SS" en la zona indicada
    """
    tz = pytz.timezone(tz_name)
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(tz).strftime("%Y-%m-%dT%H:%M:%S")


def local_now(tz_name: str = "Asia/Kolkata") -> datetime:
    """Hora actual en la zona del negocio, sin tzinfo."""
    return datetime.now(pytz.timezone(tz_name)).replace(tzinfo=None)


def local_today(tz_name: str = "Asia/Kolkata") -> date:
    """Fecha de hoy en la zona del negocio."""
    return local_now(tz_name).date()


def hours_between(start: datetime | None, end: datetime | None) -> float:
    """Horas entre dos momentos, redondeado a 1 decimal."""
    if not start or not end or end < start:
        return 0.0
    return round((end - start).total_seconds() / 3600, 1)
