"""
Finance Entities - Ventas, gastos, depósitos bancarios y prestatarios.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from finflux.utils.mappers import (
    format_date,
    parse_date,
    parse_datetime,
    to_bool,
    to_float,
    to_optional_float,
    to_optional_str,
    to_str,
)


# ==================== SALES ====================


@dataclass
class SaleRecord:
    """
    Fila del historial de ventas (sale-history).

    Los cobros se reparten en efectivo, PhonePe (UPI), tarjeta y
    faltantes (shortCollections).
    """

    id: str
    product_name: str
    sales_in_rupees: float = 0.0
    sales_in_liters: float = 0.0
    cash_received: float = 0.0
    phone_pay: float = 0.0
    credit_card: float = 0.0
    short_collections: float = 0.0
    date_time: datetime | None = None
    emp_id: str | None = None
    guns: str | None = None

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "SaleRecord":
        return cls(
            id=to_str(data.get("id")),
            product_name=to_str(data.get("productName")),
            sales_in_rupees=to_float(data.get("salesInRupees")),
            sales_in_liters=to_float(data.get("salesInLiters")),
            cash_received=to_float(data.get("cashReceived")),
            phone_pay=to_float(data.get("phonePay")),
            credit_card=to_float(data.get("creditCard")),
            short_collections=to_float(data.get("shortCollections")),
            date_time=parse_datetime(data.get("dateTime")),
            emp_id=to_optional_str(data.get("empId")),
            guns=to_optional_str(data.get("guns")),
            _raw=data,
        )

    def payment_breakdown(self) -> dict[str, float]:
        """Cobros por método de pago."""
        return {
            "Cash": self.cash_received,
            "UPI": self.phone_pay,
            "Card": self.credit_card,
            "Short": self.short_collections,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "sales_in_rupees": self.sales_in_rupees,
            "sales_in_liters": self.sales_in_liters,
            "cash_received": self.cash_received,
            "phone_pay": self.phone_pay,
            "credit_card": self.credit_card,
            "short_collections": self.short_collections,
            "date_time": self.date_time.isoformat() if self.date_time else None,
            "emp_id": self.emp_id,
        }


# ==================== EXPENSES ====================


class ExpenseStatus(str, Enum):
    """Estado de aprobación de un gasto."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class Expense:
    """Gasto operativo de la estación."""

    id: str
    amount: float
    category: str
    expense_date: date | None = None
    description: str | None = None
    status: ExpenseStatus = ExpenseStatus.PENDING
    requested_by: str | None = None
    approved_by: str | None = None
    has_receipt: bool = False

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Expense":
        raw_status = str(data.get("status") or "pending").strip().lower()
        try:
            status = ExpenseStatus(raw_status)
        except ValueError:
            status = ExpenseStatus.PENDING

        return cls(
            id=to_str(data.get("id")),
            amount=to_float(data.get("amount")),
            category=to_str(data.get("category"), "Other"),
            expense_date=parse_date(data.get("date") or data.get("expenseDate")),
            description=to_optional_str(data.get("description")),
            status=status,
            requested_by=to_optional_str(data.get("requestedBy")),
            approved_by=to_optional_str(data.get("approvedBy")),
            has_receipt=to_bool(data.get("receipt", False)),
            _raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "date": format_date(self.expense_date),
            "description": self.description,
            "status": self.status.value,
            "requested_by": self.requested_by,
            "approved_by": self.approved_by,
        }


# ==================== BANK DEPOSITS ====================


@dataclass
class BankDeposit:
    """Depósito bancario con comprobante opcional."""

    id: str
    amount: float
    deposit_date: date | None = None
    bank_name: str | None = None
    account_number: str | None = None
    reference_number: str | None = None
    deposited_by: str | None = None
    notes: str | None = None
    receipt_url: str | None = None
    organization_id: str | None = None

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "BankDeposit":
        return cls(
            id=to_str(data.get("id")),
            amount=to_float(data.get("amount")),
            deposit_date=parse_date(data.get("depositDate")),
            bank_name=to_optional_str(data.get("bankName")),
            account_number=to_optional_str(data.get("accountNumber")),
            reference_number=to_optional_str(data.get("referenceNumber")),
            deposited_by=to_optional_str(data.get("depositedBy")),
            notes=to_optional_str(data.get("notes")),
            receipt_url=to_optional_str(data.get("receiptUrl")),
            organization_id=to_optional_str(data.get("organizationId")),
            _raw=data,
        )

    def matches(self, query: str) -> bool:
        """Búsqueda por banco, cuenta, referencia o depositante."""
        needle = query.strip().lower()
        if not needle:
            return True
        haystack = (
            self.bank_name,
            self.account_number,
            self.reference_number,
            self.deposited_by,
        )
        return any(needle in value.lower() for value in haystack if value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "deposit_date": format_date(self.deposit_date),
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "reference_number": self.reference_number,
            "deposited_by": self.deposited_by,
            "notes": self.notes,
            "has_receipt": bool(self.receipt_url),
        }


# ==================== BORROWERS ====================


@dataclass
class Customer:
    """Cliente a crédito (prestatario)."""

    id: str
    name: str
    phone: str | None = None
    email: str | None = None
    credit_limit: float | None = None
    outstanding: float = 0.0
    total_borrowed: float = 0.0
    status: str | None = None

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Customer":
        return cls(
            id=to_str(data.get("id")),
            name=to_str(data.get("name") or data.get("customerName")),
            phone=to_optional_str(data.get("phone")),
            email=to_optional_str(data.get("email")),
            credit_limit=to_optional_float(data.get("creditLimit")),
            outstanding=to_float(data.get("outstanding")),
            total_borrowed=to_float(data.get("totalBorrowed")),
            status=to_optional_str(data.get("status")),
            _raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "credit_limit": self.credit_limit,
            "outstanding": self.outstanding,
            "total_borrowed": self.total_borrowed,
            "status": self.status,
        }


@dataclass
class BorrowerTransaction:
    """Movimiento del historial de un prestatario."""

    id: str
    amount: float
    transaction_date: datetime | None = None
    customer_id: str | None = None
    notes: str | None = None

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "BorrowerTransaction":
        return cls(
            id=to_str(data.get("id") or data.get("_id")),
            amount=to_float(data.get("transactionAmount")),
            transaction_date=parse_datetime(data.get("transactionDate")),
            customer_id=to_optional_str(data.get("customerId")),
            notes=to_optional_str(data.get("notes")),
            _raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "transaction_date": (
                self.transaction_date.isoformat() if self.transaction_date else None
            ),
            "customer_id": self.customer_id,
            "notes": self.notes,
        }
