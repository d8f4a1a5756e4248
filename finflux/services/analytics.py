"""
Agregaciones para stat cards y gráficos.

Funciones puras: reciben el listado completo de registros y devuelven
un agregado nuevo. Mismo input, mismo output; sin efectos secundarios.
"""

from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from typing import Any, TypeVar

from finflux.domain.entities import (
    AttendanceRecord,
    BankDeposit,
    Customer,
    Expense,
    ExpenseStatus,
    Product,
    SaleRecord,
)

T = TypeVar("T")

DateOf = Callable[[T], date | datetime | None]

PRESETS = ("today", "week", "month", "all")


def percentage(part: float, total: float) -> int:
    """round(100 * part / total); 0 si total es 0."""
    if not total:
        return 0
    return round(100 * part / total)


def _day(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


# ==================== Agrupación ====================


def group_sum(
    records: Iterable[T],
    key: Callable[[T], Any],
    value: Callable[[T], float],
) -> dict[Any, float]:
    """Suma value agrupando por key."""
    totals: dict[Any, float] = {}
    for record in records:
        group = key(record)
        totals[group] = totals.get(group, 0.0) + (value(record) or 0.0)
    return totals


def distribution(
    records: Iterable[T],
    key: Callable[[T], Any],
    value: Callable[[T], float],
) -> list[dict[str, Any]]:
    """Como group_sum pero en formato [{"name", "value"}] para gráficos."""
    return [
        {"name": name, "value": total}
        for name, total in group_sum(records, key, value).items()
    ]


def with_percentages(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Agrega "percent" a cada item respecto del total."""
    total = sum(item["value"] for item in items)
    return [{**item, "percent": percentage(item["value"], total)} for item in items]


# ==================== Tiempo ====================


def is_today(moment: date | datetime | None, today: date) -> bool:
    """Igualdad de día calendario local."""
    return _day(moment) == today


def last_n_days(today: date, n: int = 7) -> list[date]:
    """Los últimos n días terminando hoy, del más antiguo al más nuevo."""
    return [today - timedelta(days=offset) for offset in range(n - 1, -1, -1)]


def daily_buckets(
    records: Iterable[T],
    date_of: DateOf,
    value: Callable[[T], float],
    today: date,
    days: int = 7,
) -> list[dict[str, Any]]:
    """
    Totales por día para los últimos `days` días.

    Siempre devuelve exactamente `days` entradas, inicializadas en 0.
    """
    buckets = {day: 0.0 for day in last_n_days(today, days)}
    for record in records:
        day = _day(date_of(record))
        if day in buckets:
            buckets[day] += value(record) or 0.0

    return [
        {"date": day.isoformat(), "day": day.strftime("%a"), "value": total}
        for day, total in buckets.items()
    ]


def filter_by_range(
    records: Iterable[T],
    date_of: DateOf,
    start: date | None,
    end: date | None,
) -> list[T]:
    """Registros con fecha dentro de [start, end]; None = sin límite."""
    result = []
    for record in records:
        day = _day(date_of(record))
        if day is None:
            if start is None and end is None:
                result.append(record)
            continue
        if start and day < start:
            continue
        if end and day > end:
            continue
        result.append(record)
    return result


def month_to_date(records: Iterable[T], date_of: DateOf, today: date) -> list[T]:
    return filter_by_range(records, date_of, today.replace(day=1), today)


def date_range_for_preset(preset: str, today: date) -> tuple[date | None, date | None]:
    """
    Rango de fechas para un preset.

    - today: hoy
    - week: desde el lunes de esta semana
    - month: desde el día 1
    - all: sin límites
    """
    if preset == "today":
        return today, today
    if preset == "week":
        return today - timedelta(days=today.weekday()), today
    if preset == "month":
        return today.replace(day=1), today
    if preset == "all":
        return None, None
    raise ValueError(f"Unknown preset: {preset}")


# ==================== Stat builders ====================


def _sale_date(sale: SaleRecord) -> datetime | None:
    return sale.date_time


def sales_summary(sales: list[SaleRecord]) -> dict[str, Any]:
    """Totales de ventas y cobros por método."""
    total = sum(s.sales_in_rupees for s in sales)
    parts = {
        "cash": sum(s.cash_received for s in sales),
        "upi": sum(s.phone_pay for s in sales),
        "card": sum(s.credit_card for s in sales),
        "short": sum(s.short_collections for s in sales),
    }
    summary: dict[str, Any] = {"total": total, "count": len(sales)}
    for name, amount in parts.items():
        summary[name] = amount
        summary[f"{name}_percent"] = percentage(amount, total)
    return summary


def payment_breakdown(sales: list[SaleRecord]) -> list[dict[str, Any]]:
    totals: dict[str, float] = {}
    for sale in sales:
        for method, amount in sale.payment_breakdown().items():
            totals[method] = totals.get(method, 0.0) + amount
    return with_percentages([{"name": k, "value": v} for k, v in totals.items()])


def fuel_distribution(sales: list[SaleRecord]) -> list[dict[str, Any]]:
    """Ventas en rupias por producto, con porcentaje del total."""
    return with_percentages(
        distribution(sales, lambda s: s.product_name or "Unknown", lambda s: s.sales_in_rupees)
    )


def deposit_stats(deposits: list[BankDeposit], today: date) -> dict[str, Any]:
    """Totales de depósitos: todos, hoy y este mes."""
    todays = [d for d in deposits if d.deposit_date == today]
    month = [
        d for d in deposits
        if d.deposit_date and (d.deposit_date.year, d.deposit_date.month) == (today.year, today.month)
    ]
    return {
        "total_count": len(deposits),
        "total_amount": sum(d.amount for d in deposits),
        "today_count": len(todays),
        "today_amount": sum(d.amount for d in todays),
        "month_count": len(month),
        "month_amount": sum(d.amount for d in month),
    }


def product_stats(products: list[Product]) -> dict[str, Any]:
    return {
        "products": len(products),
        "active": sum(1 for p in products if p.is_active),
        "total_capacity": sum(p.tank_capacity for p in products),
        "total_stock": sum(p.current_level for p in products),
    }


def expense_stats(expenses: list[Expense], today: date) -> dict[str, Any]:
    total = sum(e.amount for e in expenses)
    return {
        "total": total,
        "pending": sum(1 for e in expenses if e.status == ExpenseStatus.PENDING),
        "approved_today": sum(
            1 for e in expenses
            if e.status == ExpenseStatus.APPROVED and e.expense_date == today
        ),
        "average": round(total / len(expenses)) if expenses else 0,
    }


def borrower_stats(customers: list[Customer]) -> dict[str, Any]:
    return {
        "borrowers": len(customers),
        "outstanding": sum(c.outstanding for c in customers),
        "total_borrowed": sum(c.total_borrowed for c in customers),
    }


def attendance_stats(records: list[AttendanceRecord], today: date) -> dict[str, Any]:
    todays = [r for r in records if r.is_for_day(today)]
    present = sum(1 for r in todays if r.present or r.check_in is not None)
    return {
        "present": present,
        "absent": len(todays) - present,
        "total": len(todays),
    }


def inventory_overview(products: list[Product], threshold_percent: float) -> dict[str, Any]:
    """Estado por tanque y resumen de stock bajo."""
    tanks = []
    low = 0
    for product in products:
        is_low = product.is_low_stock(threshold_percent)
        low += is_low
        tanks.append({**product.to_dict(), "is_low": is_low})

    stats = product_stats(products)
    return {
        **stats,
        "fill_percent": percentage(stats["total_stock"], stats["total_capacity"]),
        "low_stock": low,
        "tanks": tanks,
    }


def analytics_overview(
    sales: list[SaleRecord],
    expenses: list[Expense],
    start: date | None,
    end: date | None,
    today: date,
) -> dict[str, Any]:
    """
    KPIs del rango: ingresos, gastos, utilidad y distribuciones.

    daily_sales siempre cubre los últimos 7 días sin importar el rango.
    """
    in_range = filter_by_range(sales, _sale_date, start, end)
    expenses_in_range = filter_by_range(expenses, lambda e: e.expense_date, start, end)

    revenue = sum(s.sales_in_rupees for s in in_range)
    spent = sum(e.amount for e in expenses_in_range)
    profit = revenue - spent

    return {
        "revenue": revenue,
        "expenses": spent,
        "profit": profit,
        "margin_percent": percentage(profit, revenue),
        "fuel_distribution": fuel_distribution(in_range),
        "payment_breakdown": payment_breakdown(in_range),
        "expense_categories": with_percentages(
            distribution(expenses_in_range, lambda e: e.category, lambda e: e.amount)
        ),
        "daily_sales": daily_buckets(sales, _sale_date, lambda s: s.sales_in_rupees, today),
    }
