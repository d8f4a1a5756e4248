"""
Validación de formularios.

Todas las reglas corren antes de tocar la red y levantan
ValidationError con el campo que falló. Los validadores por formulario
devuelven el payload ya normalizado listo para el backend.
"""

from datetime import date
from typing import Any

from finflux.utils.errors import ValidationError
from finflux.utils.mappers import format_date, parse_date, to_optional_str

DOCUMENT_REQUIRED_FIELDS = (
    "documentType",
    "issuingAuthority",
    "issuedDate",
    "expiryDate",
    "renewalPeriodDays",
    "responsibleParty",
)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def require(form: dict[str, Any], *fields: str) -> None:
    """
    Verifica que los campos existan y no estén vacíos.

    Raises:
        ValidationError: con el primer campo faltante
    """
    for name in fields:
        if _is_blank(form.get(name)):
            raise ValidationError("Please fill all required fields.", field=name)


def _as_number(value: Any, field: str, message: str) -> float:
    if _is_blank(value) or isinstance(value, bool):
        raise ValidationError(message, field=field)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(message, field=field)


def positive_amount(value: Any, field: str = "amount") -> float:
    """Número estrictamente mayor a cero."""
    amount = _as_number(value, field, "Please enter a valid amount.")
    if amount <= 0:
        raise ValidationError("Please enter a valid amount.", field=field)
    return amount


def non_negative(value: Any, field: str) -> float:
    """Número mayor o igual a cero."""
    number = _as_number(value, field, f"{field} must be a number.")
    if number < 0:
        raise ValidationError(f"{field} cannot be negative.", field=field)
    return number


def date_order(
    start: date | None,
    end: date | None,
    start_field: str = "fromDate",
    end_field: str = "toDate",
) -> None:
    """El inicio no puede ser posterior al fin (si ambos existen)."""
    if start and end and start > end:
        raise ValidationError(
            f"{start_field} must not be after {end_field}.", field=start_field
        )


def _required_date(form: dict[str, Any], field: str, message: str) -> date:
    parsed = parse_date(form.get(field))
    if parsed is None:
        raise ValidationError(message, field=field)
    return parsed


# ==================== Formularios ====================


def validate_deposit(form: dict[str, Any]) -> dict[str, Any]:
    """
    Formulario de depósito bancario.

    Orden: monto válido, luego fecha de depósito.
    """
    amount = positive_amount(form.get("amount"))
    deposit_date = _required_date(form, "depositDate", "Deposit date is required.")

    return {
        "depositDate": format_date(deposit_date),
        "amount": amount,
        "bankName": to_optional_str(form.get("bankName")),
        "accountNumber": to_optional_str(form.get("accountNumber")),
        "referenceNumber": to_optional_str(form.get("referenceNumber")),
        "depositedBy": to_optional_str(form.get("depositedBy")),
        "receiptUrl": to_optional_str(form.get("receiptUrl")),
        "notes": to_optional_str(form.get("notes")),
    }


def validate_document(form: dict[str, Any]) -> dict[str, Any]:
    """
    Formulario de documento.

    Orden: archivo subido, campos requeridos, periodo de renovación
    positivo, emisión <= vencimiento.
    """
    if _is_blank(form.get("fileUrl")):
        raise ValidationError("Please upload the file first.", field="fileUrl")

    require(form, *DOCUMENT_REQUIRED_FIELDS)

    renewal = _as_number(
        form.get("renewalPeriodDays"),
        "renewalPeriodDays",
        "Please fill all required fields.",
    )
    if renewal <= 0:
        raise ValidationError(
            "Renewal period must be greater than 0.", field="renewalPeriodDays"
        )

    issued = _required_date(form, "issuedDate", "Issued date is invalid.")
    expiry = _required_date(form, "expiryDate", "Expiry date is invalid.")
    date_order(issued, expiry, "issuedDate", "expiryDate")

    return {
        "documentType": str(form["documentType"]).strip(),
        "issuingAuthority": str(form["issuingAuthority"]).strip(),
        "issuedDate": format_date(issued),
        "expiryDate": format_date(expiry),
        "renewalPeriodDays": int(renewal),
        "responsibleParty": str(form["responsibleParty"]).strip(),
        "fileUrl": str(form["fileUrl"]).strip(),
        "notes": to_optional_str(form.get("notes")),
    }


def validate_product(form: dict[str, Any]) -> dict[str, Any]:
    """Formulario de producto/tanque."""
    if _is_blank(form.get("productName")):
        raise ValidationError("Product name is required.", field="productName")

    payload: dict[str, Any] = {"productName": str(form["productName"]).strip()}

    for name in ("price", "tankCapacity", "currentLevel"):
        if not _is_blank(form.get(name)):
            payload[name] = non_negative(form.get(name), name)

    capacity = payload.get("tankCapacity")
    level = payload.get("currentLevel")
    if capacity is not None and level is not None and level > capacity:
        raise ValidationError(
            "Current level cannot exceed tank capacity.", field="currentLevel"
        )

    for name in ("metric", "supplier", "description"):
        payload[name] = to_optional_str(form.get(name))
    payload["status"] = form.get("status", True) in (True, "true", "True")
    return payload


def validate_expense(form: dict[str, Any]) -> dict[str, Any]:
    """Formulario de gasto: monto positivo, categoría y fecha."""
    amount = positive_amount(form.get("amount"))
    if _is_blank(form.get("category")):
        raise ValidationError("Category is required.", field="category")
    expense_date = _required_date(form, "date", "Expense date is required.")

    return {
        "amount": amount,
        "category": str(form["category"]).strip(),
        "date": format_date(expense_date),
        "description": to_optional_str(form.get("description")),
    }


def validate_date_range(start: Any, end: Any) -> tuple[date | None, date | None]:
    """
    Filtro de historial (fromDate/toDate).

    Returns:
        Tupla (inicio, fin) parseada
    """
    start_date = parse_date(start) if start else None
    end_date = parse_date(end) if end else None
    if start and start_date is None:
        raise ValidationError("Invalid from date.", field="fromDate")
    if end and end_date is None:
        raise ValidationError("Invalid to date.", field="toDate")
    date_order(start_date, end_date)
    return start_date, end_date
