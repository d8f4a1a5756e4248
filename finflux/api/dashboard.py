"""
Dashboard API endpoints.

Vistas JSON por sesión: stat cards, agregados y notificaciones. Un
fetch fallido devuelve el último snapshot junto con un notice de error.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import date, timedelta
from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from finflux.api.deps import current_context, current_session, require_route
from finflux.config import get_settings
from finflux.core.roles import navigation_for
from finflux.core.session import DashboardContext, Session
from finflux.domain.validation import validate_date_range
from finflux.services import analytics
from finflux.utils.errors import FinfluxError, ValidationError
from finflux.utils.formatting import format_inr, hours_between, local_now, local_today
from finflux.utils.notices import notice_from_error, success

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

# Inicio del historial para el preset "all"
HISTORY_START = date(2000, 1, 1)


async def _load(
    fetch: Callable[[], Awaitable[list[Any]]],
    cached: Callable[[], Awaitable[list[Any]]],
    fallback: str,
) -> tuple[list[Any], dict | None]:
    """Fetch con fallback al snapshot anterior + notice de error."""
    try:
        return await fetch(), None
    except FinfluxError as e:
        return await cached(), notice_from_error(e, fallback).to_dict()


def _resolve_range(
    preset: str,
    from_date: str | None,
    to_date: str | None,
    today: date,
) -> tuple[date | None, date | None]:
    if from_date or to_date:
        return validate_date_range(from_date, to_date)
    try:
        return analytics.date_range_for_preset(preset, today)
    except ValueError:
        raise ValidationError(f"Unknown period: {preset}", field="preset")


def _notices(*items: dict | None) -> list[dict]:
    return [item for item in items if item]


# ==================== Navegación ====================


@router.get("/navigation")
async def navigation(session: Session = Depends(current_session)):
    return {"role": session.role.value, "items": navigation_for(session.role)}


# ==================== Inventario ====================


@router.get("/inventory", dependencies=[Depends(require_route("/inventory"))])
async def inventory(context: DashboardContext = Depends(current_context)):
    """
    Tanques, resumen de stock y estado de alertas por tanque.

    Solo reporta; los envíos los hace inventory_poll_job.
    """
    threshold = context.monitor.tracker.threshold_percent
    products, notice = await _load(
        context.products.list, context.products.cached, "Failed to load inventory"
    )

    overview = analytics.inventory_overview(products, threshold)
    for tank in overview["tanks"]:
        tank["alert_status"] = context.monitor.statuses.get(tank["id"] or tank["product_name"])

    return {
        **overview,
        "threshold_percent": threshold,
        "alerted": sorted(context.monitor.tracker.alerted),
        "notices": _notices(notice),
    }


@router.get("/inventory/history", dependencies=[Depends(require_route("/inventory/history"))])
async def inventory_history(
    product: str | None = Query(default=None),
    from_date: str | None = Query(default=None, alias="from"),
    to_date: str | None = Query(default=None, alias="to"),
    context: DashboardContext = Depends(current_context),
):
    logs, notice = await _load(
        lambda: context.inventory_logs.search(product, from_date, to_date),
        context.inventory_logs.cached,
        "Failed to load inventory history",
    )
    return {"logs": [log.to_dict() for log in logs], "notices": _notices(notice)}


@router.get("/products", dependencies=[Depends(require_route("/products"))])
async def products(context: DashboardContext = Depends(current_context)):
    items, notice = await _load(
        context.products.list, context.products.cached, "Failed to load products"
    )
    return {
        "stats": analytics.product_stats(items),
        "products": [p.to_dict() for p in items],
        "notices": _notices(notice),
    }


# ==================== Ventas y analytics ====================


@router.get("/sales", dependencies=[Depends(require_route("/sales/history"))])
async def sales(
    preset: str = Query(default="today"),
    from_date: str | None = Query(default=None, alias="from"),
    to_date: str | None = Query(default=None, alias="to"),
    context: DashboardContext = Depends(current_context),
):
    """Historial de ventas del periodo con resumen de cobros."""
    today = local_today(settings.tz)
    start, end = _resolve_range(preset, from_date, to_date, today)

    records, notice = await _load(
        lambda: context.sales_history.by_date(start or HISTORY_START, end or today),
        context.sales_history.cached,
        "Failed to load sales history",
    )
    summary = analytics.sales_summary(records)
    return {
        "from": start.isoformat() if start else None,
        "to": end.isoformat() if end else None,
        "summary": summary,
        "total_display": format_inr(summary["total"]),
        "fuel_distribution": analytics.fuel_distribution(records),
        "records": [r.to_dict() for r in records],
        "notices": _notices(notice),
    }


@router.get("/analytics", dependencies=[Depends(require_route("/analytics"))])
async def analytics_view(
    preset: str = Query(default="month"),
    context: DashboardContext = Depends(current_context),
):
    """KPIs del periodo; la serie diaria cubre siempre los últimos 7 días."""
    today = local_today(settings.tz)
    start, end = _resolve_range(preset, None, None, today)
    window_start = min(start or HISTORY_START, today - timedelta(days=6))

    sales_records, sales_notice = await _load(
        lambda: context.sales_history.by_date(window_start, today),
        context.sales_history.cached,
        "Failed to load sales",
    )
    expenses, expenses_notice = await _load(
        context.expenses.list, context.expenses.cached, "Failed to load expenses"
    )

    overview = analytics.analytics_overview(sales_records, expenses, start, end, today)
    return {
        "preset": preset,
        **overview,
        "expense_stats": analytics.expense_stats(expenses, today),
        "notices": _notices(sales_notice, expenses_notice),
    }


# ==================== Depósitos ====================


@router.get("/bank-deposits", dependencies=[Depends(require_route("/bank-deposits"))])
async def bank_deposits(
    q: str = Query(default=""),
    context: DashboardContext = Depends(current_context),
):
    """Stat cards sobre todos los depósitos; la búsqueda filtra el listado."""
    deposits, notice = await _load(
        context.bank_deposits.list,
        context.bank_deposits.cached,
        "Failed to load bank deposits",
    )
    stats = analytics.deposit_stats(deposits, local_today(settings.tz))
    return {
        "stats": stats,
        "deposits": [d.to_dict() for d in deposits if d.matches(q)],
        "notices": _notices(notice),
    }


@router.post("/bank-deposits", dependencies=[Depends(require_route("/bank-deposits"))])
async def create_bank_deposit(
    form: dict[str, Any] = Body(...),
    context: DashboardContext = Depends(current_context),
):
    await context.bank_deposits.submit(form)
    return {"notice": success("Deposit Added", "Bank deposit saved successfully").to_dict()}


@router.get(
    "/bank-deposits/{deposit_id}/download",
    dependencies=[Depends(require_route("/bank-deposits"))],
)
async def bank_deposit_download(
    deposit_id: str,
    context: DashboardContext = Depends(current_context),
):
    """URL de descarga del comprobante (firmada y reparada, o receiptUrl)."""
    url = await context.bank_deposits.download_url(deposit_id)
    return {
        "url": url,
        "notice": success("Download started", "Opening the receipt...").to_dict(),
    }


# ==================== Documentos y prestatarios ====================


@router.get("/documents", dependencies=[Depends(require_route("/documents"))])
async def documents(context: DashboardContext = Depends(current_context)):
    today = local_today(settings.tz)
    items, notice = await _load(
        context.documents.list, context.documents.cached, "Failed to load documents"
    )
    return {
        "documents": [
            {**doc.to_dict(), "days_until_expiry": doc.days_until_expiry(today)}
            for doc in items
        ],
        "notices": _notices(notice),
    }


@router.get(
    "/documents/{document_id}/lifecycle",
    dependencies=[Depends(require_route("/documents"))],
)
async def document_lifecycle(
    document_id: str,
    context: DashboardContext = Depends(current_context),
):
    return await context.documents.lifecycle_status(document_id)


@router.get("/borrowers", dependencies=[Depends(require_route("/borrowers"))])
async def borrowers(context: DashboardContext = Depends(current_context)):
    customers, notice = await _load(
        context.customers.list, context.customers.cached, "Failed to load borrowers"
    )
    return {
        "stats": analytics.borrower_stats(customers),
        "borrowers": [c.to_dict() for c in customers],
        "notices": _notices(notice),
    }


@router.get("/borrowers/history", dependencies=[Depends(require_route("/borrowers/history"))])
async def borrower_history(context: DashboardContext = Depends(current_context)):
    history, notice = await _load(
        context.customers.history,
        lambda: context.store.get("customer_history"),
        "Failed to load borrower history",
    )
    return {"history": [h.to_dict() for h in history], "notices": _notices(notice)}


# ==================== Asistencia ====================


def _attendance_view(records: list, today: date) -> dict[str, Any]:
    today_record = next((r for r in records if r.is_for_day(today)), None)
    return {
        "today": today_record.to_dict() if today_record else None,
        "hours_today": (
            hours_between(today_record.check_in, today_record.check_out or local_now(settings.tz))
            if today_record
            else 0.0
        ),
        "can_check_in": today_record is None,
        "can_break_in": bool(today_record and today_record.can_break_in),
        "can_break_out": bool(today_record and today_record.can_break_out),
        "can_check_out": bool(today_record and today_record.can_check_out),
        "stats": analytics.attendance_stats(records, today),
        "records": [r.to_dict() for r in records],
    }


@router.get("/attendance", dependencies=[Depends(require_route("/attendance"))])
async def attendance(context: DashboardContext = Depends(current_context)):
    records, notice = await _load(
        context.attendance.list, context.attendance.cached, "Failed to load attendance"
    )
    return {
        **_attendance_view(records, local_today(settings.tz)),
        "notices": _notices(notice),
    }


ATTENDANCE_NOTICES = {
    "check-in": ("Checked In Successfully", "Your attendance has been recorded."),
    "break-in": ("Break Started", "Enjoy your break."),
    "break-out": ("Break Ended", "Welcome back."),
    "check-out": ("Checked Out Successfully", "Good job today!"),
}


@router.post("/attendance/{action}", dependencies=[Depends(require_route("/attendance"))])
async def attendance_action(
    action: str,
    context: DashboardContext = Depends(current_context),
):
    """check-in | break-in | break-out | check-out."""
    service = context.attendance
    handlers = {
        "check-in": service.check_in,
        "break-in": service.break_in,
        "break-out": service.break_out,
        "check-out": service.check_out,
    }
    handler = handlers.get(action)
    if handler is None:
        raise ValidationError(f"Unknown attendance action: {action}", field="action")

    today = local_today(settings.tz)
    await handler(today)

    title, description = ATTENDANCE_NOTICES[action]
    records = await service.cached()
    return {
        **_attendance_view(records, today),
        "notice": success(title, description).to_dict(),
    }
