"""Domain Entities - DTOs del backend como dataclasses."""

from finflux.domain.entities.staff import Employee, AttendanceRecord
from finflux.domain.entities.inventory import Product, InventoryLog
from finflux.domain.entities.finance import (
    SaleRecord,
    Expense,
    ExpenseStatus,
    BankDeposit,
    Customer,
    BorrowerTransaction,
)
from finflux.domain.entities.document import Document

__all__ = [
    "Employee",
    "AttendanceRecord",
    "Product",
    "InventoryLog",
    "SaleRecord",
    "Expense",
    "ExpenseStatus",
    "BankDeposit",
    "Customer",
    "BorrowerTransaction",
    "Document",
]
