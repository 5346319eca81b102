from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.audit import AuditStamp, stamp_dict


@dataclass(frozen=True)
class PayrollSlip:
    """Rendered payslip for one employee of an approved or paid period.

    `content_hash` is the SHA-256 hex digest of the UTF-8 encoded content.
    """

    slip_id: int
    period_id: int
    tenant_id: str
    employee_id: int
    employee_name: str
    reference_month: int
    reference_year: int
    content: str
    content_hash: str
    generated: AuditStamp
    content_type: str = "text/plain"
    notes: Optional[str] = None

    @property
    def content_size(self) -> int:
        return len(self.content.encode("utf-8"))

    def to_dict(self) -> dict:
        return {
            "slip_id": self.slip_id,
            "period_id": self.period_id,
            "tenant_id": self.tenant_id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "reference_month": self.reference_month,
            "reference_year": self.reference_year,
            "content": self.content,
            "content_hash": self.content_hash,
            "content_type": self.content_type,
            "content_size": self.content_size,
            "generated": stamp_dict(self.generated),
            "notes": self.notes,
        }
