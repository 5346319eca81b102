from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..aggregation.model import PayrollResult, Totals
from ..common.audit import AuditStamp, stamp_dict
from ..core.enums import AuditAction, PeriodStatus
from ..entries.model import PayrollEntry


@dataclass(frozen=True)
class PayrollPeriod:
    """One month/year payroll batch for a tenant.

    `entries` and `results` are the owned collections; they are only
    materialized when the period is loaded through `get_period`.
    """

    period_id: int
    tenant_id: str
    reference_month: int
    reference_year: int
    status: PeriodStatus
    created: AuditStamp
    updated: Optional[AuditStamp] = None
    locked: Optional[AuditStamp] = None
    calculated: Optional[AuditStamp] = None
    approved: Optional[AuditStamp] = None
    paid: Optional[AuditStamp] = None
    payment_date: Optional[date] = None
    totals: Totals = field(default_factory=Totals.zero)
    notes: Optional[str] = None
    entries: tuple[PayrollEntry, ...] = ()
    results: tuple[PayrollResult, ...] = ()

    @property
    def reference(self) -> str:
        return f"{self.reference_year:04d}-{self.reference_month:02d}"

    def to_dict(self) -> dict:
        return {
            "period_id": self.period_id,
            "tenant_id": self.tenant_id,
            "reference_month": self.reference_month,
            "reference_year": self.reference_year,
            "status": self.status.value,
            "created": stamp_dict(self.created),
            "updated": stamp_dict(self.updated),
            "locked": stamp_dict(self.locked),
            "calculated": stamp_dict(self.calculated),
            "approved": stamp_dict(self.approved),
            "paid": stamp_dict(self.paid),
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
            "totals": self.totals.to_dict(),
            "notes": self.notes,
            "entries": [e.to_dict() for e in self.entries],
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class PeriodSummary:
    period_id: int
    tenant_id: str
    reference_month: int
    reference_year: int
    status: PeriodStatus
    entry_count: int
    totals: Totals
    created: AuditStamp
    updated: Optional[AuditStamp] = None

    def to_dict(self) -> dict:
        return {
            "period_id": self.period_id,
            "tenant_id": self.tenant_id,
            "reference_month": self.reference_month,
            "reference_year": self.reference_year,
            "status": self.status.value,
            "entry_count": self.entry_count,
            "totals": self.totals.to_dict(),
            "created": stamp_dict(self.created),
            "updated": stamp_dict(self.updated),
        }


@dataclass(frozen=True)
class AuditRecord:
    period_id: int
    tenant_id: str
    action: AuditAction
    stamp: AuditStamp
    from_status: Optional[PeriodStatus] = None
    to_status: Optional[PeriodStatus] = None
    notes: Optional[str] = None
