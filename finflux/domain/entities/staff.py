"""
Staff Entities - Employee y AttendanceRecord.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from finflux.utils.mappers import (
    parse_date,
    parse_datetime,
    to_bool,
    to_float,
    to_optional_str,
    to_str,
)


@dataclass
class Employee:
    """
    Entidad de Empleado.

    El empId es el identificador de negocio; id es el del backend.
    """

    id: str
    emp_id: str
    name: str
    role: str | None = None
    email: str | None = None
    phone: str | None = None
    shift: str | None = None
    status: str | None = None
    salary: float = 0.0
    join_date: date | None = None
    profile_image_url: str | None = None

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Employee":
        return cls(
            id=to_str(data.get("id")),
            emp_id=to_str(data.get("empId")),
            name=to_str(data.get("name") or data.get("username")),
            role=to_optional_str(data.get("role")),
            email=to_optional_str(data.get("email")),
            phone=to_optional_str(data.get("phone") or data.get("phoneNumber")),
            shift=to_optional_str(data.get("shift")),
            status=to_optional_str(data.get("status")),
            salary=to_float(data.get("salary")),
            join_date=parse_date(data.get("joinDate")),
            profile_image_url=to_optional_str(data.get("profileImageUrl")),
            _raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "emp_id": self.emp_id,
            "name": self.name,
            "role": self.role,
            "email": self.email,
            "phone": self.phone,
            "shift": self.shift,
            "status": self.status,
            "profile_image_url": self.profile_image_url,
        }


@dataclass
class AttendanceRecord:
    """
    Registro de asistencia diario de un empleado.

    Las métricas (working, breakTime, shortTime, extraHours) las calcula
    el backend y llegan como texto.
    """

    id: str
    emp_id: str
    username: str | None = None
    organization_id: str | None = None
    check_in: datetime | None = None
    break_in: datetime | None = None
    break_out: datetime | None = None
    check_out: datetime | None = None
    working: str | None = None
    break_time: str | None = None
    short_time: str | None = None
    extra_hours: str | None = None
    description: str | None = None
    present: bool = False

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "AttendanceRecord":
        return cls(
            id=to_str(data.get("id")),
            emp_id=to_str(data.get("empId")),
            username=to_optional_str(data.get("username")),
            organization_id=to_optional_str(data.get("organizationId")),
            check_in=parse_datetime(data.get("checkIn")),
            break_in=parse_datetime(data.get("breakIn")),
            break_out=parse_datetime(data.get("breakOut")),
            check_out=parse_datetime(data.get("checkOut")),
            working=to_optional_str(data.get("working")),
            break_time=to_optional_str(data.get("breakTime")),
            short_time=to_optional_str(data.get("shortTime")),
            extra_hours=to_optional_str(data.get("extraHours")),
            description=to_optional_str(data.get("description")),
            present=to_bool(data.get("present", False)),
            _raw=data,
        )

    # ==================== Estado ====================

    @property
    def has_checked_out(self) -> bool:
        return self.check_out is not None

    @property
    def is_on_break(self) -> bool:
        return self.break_in is not None and self.break_out is None

    @property
    def can_break_in(self) -> bool:
        return not self.has_checked_out and not self.is_on_break

    @property
    def can_break_out(self) -> bool:
        return not self.has_checked_out and self.is_on_break

    @property
    def can_check_out(self) -> bool:
        return not self.has_checked_out and not self.is_on_break

    def is_for_day(self, day: date) -> bool:
        """True si el check-in cae en el día dado."""
        return self.check_in is not None and self.check_in.date() == day

    def to_dict(self) -> dict[str, Any]:
        def _iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "emp_id": self.emp_id,
            "username": self.username,
            "check_in": _iso(self.check_in),
            "break_in": _iso(self.break_in),
            "break_out": _iso(self.break_out),
            "check_out": _iso(self.check_out),
            "working": self.working,
            "break_time": self.break_time,
            "short_time": self.short_time,
            "extra_hours": self.extra_hours,
            "present": self.present,
            "is_on_break": self.is_on_break,
            "has_checked_out": self.has_checked_out,
        }
