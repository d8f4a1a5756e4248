"""
Document Entity - Licencias y permisos de la estación.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from finflux.utils.mappers import format_date, parse_date, to_float, to_optional_str, to_str


@dataclass
class Document:
    """
    Documento regulatorio con fecha de vencimiento.

    El archivo vive en el host de assets; aquí solo se guarda su URL.
    """

    id: str
    document_type: str
    issuing_authority: str | None = None
    issued_date: date | None = None
    expiry_date: date | None = None
    renewal_period_days: int = 0
    responsible_party: str | None = None
    file_url: str | None = None
    notes: str | None = None
    organization_id: str | None = None

    _raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Document":
        return cls(
            id=to_str(data.get("id")),
            document_type=to_str(data.get("documentType")),
            issuing_authority=to_optional_str(data.get("issuingAuthority")),
            issued_date=parse_date(data.get("issuedDate")),
            expiry_date=parse_date(data.get("expiryDate")),
            renewal_period_days=int(to_float(data.get("renewalPeriodDays"))),
            responsible_party=to_optional_str(data.get("responsibleParty")),
            file_url=to_optional_str(data.get("fileUrl")),
            notes=to_optional_str(data.get("notes")),
            organization_id=to_optional_str(data.get("organizationId")),
            _raw=data,
        )

    def days_until_expiry(self, today: date) -> int | None:
        if self.expiry_date is None:
            return None
        return (self.expiry_date - today).days

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "document_type": self.document_type,
            "issuing_authority": self.issuing_authority,
            "issued_date": format_date(self.issued_date),
            "expiry_date": format_date(self.expiry_date),
            "renewal_period_days": self.renewal_period_days,
            "responsible_party": self.responsible_party,
            "file_url": self.file_url,
        }
