"""
Domain module - Entidades y validación de formularios.

Estructura:
    - entities/: Dataclasses que representan los DTOs del backend
    - validation: Reglas que corren antes de cualquier llamada de red
"""

from finflux.domain.entities import (
    Employee,
    AttendanceRecord,
    Product,
    InventoryLog,
    SaleRecord,
    Expense,
    BankDeposit,
    Customer,
    BorrowerTransaction,
    Document,
)

__all__ = [
    "Employee",
    "AttendanceRecord",
    "Product",
    "InventoryLog",
    "SaleRecord",
    "Expense",
    "BankDeposit",
    "Customer",
    "BorrowerTransaction",
    "Document",
]
