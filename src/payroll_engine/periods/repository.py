from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..aggregation.model import PayrollResult
from ..core.enums import PeriodStatus
from ..entries.model import PayrollEntry
from .model import AuditRecord, PayrollPeriod, PeriodSummary


class PeriodRepository(Protocol):
    """Persistence for the period aggregate (period row, results, audit log).

    Every write method is one atomic commit: either all rows it touches are
    written or none are.
    """

    def add_period(
        self,
        period: PayrollPeriod,
        *,
        audit: AuditRecord,
        seed_entries: Sequence[PayrollEntry] = (),
    ) -> PayrollPeriod:
        """Insert a new period (ids are assigned here).

        Raises DuplicatePeriod if (tenant, month, year) is taken.
        """

        raise NotImplementedError

    def get_period(self, period_id: int) -> Optional[PayrollPeriod]:
        raise NotImplementedError

    def find_by_reference(self, tenant_id: str, month: int, year: int) -> Optional[PayrollPeriod]:
        raise NotImplementedError

    def list_periods(
        self,
        tenant_id: str,
        *,
        year: Optional[int] = None,
        status: Optional[PeriodStatus] = None,
    ) -> Sequence[PeriodSummary]:
        """Most recent reference first."""

        raise NotImplementedError

    def list_results(self, period_id: int) -> Sequence[PayrollResult]:
        raise NotImplementedError

    def save_transition(
        self,
        period: PayrollPeriod,
        *,
        expected_status: PeriodStatus,
        results: Optional[Sequence[PayrollResult]],
        audit: AuditRecord,
    ) -> PayrollPeriod:
        """Write status, stamps and totals; replace results unless `results` is None.

        The write only applies while the stored status is still `expected_status`;
        otherwise InvalidTransition is raised and nothing is written. Replacing
        results also drops the payslips rendered from the previous ones.
        """

        raise NotImplementedError

    def delete_period(
        self,
        period_id: int,
        *,
        expected_status: PeriodStatus,
        audit: AuditRecord,
    ) -> bool:
        """Remove the period with its entries and results.

        Returns False when the period does not exist. Raises PeriodNotEditable
        when it exists with a status other than `expected_status`.
        """

        raise NotImplementedError

    def list_audit(self, period_id: int) -> Sequence[AuditRecord]:
        raise NotImplementedError
