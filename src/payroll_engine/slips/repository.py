from __future__ import annotations

from typing import AbstractSet, Optional, Protocol, Sequence

from ..core.enums import PeriodStatus
from .model import PayrollSlip


class SlipRepository(Protocol):
    """Persistence for payslips, unique on (period_id, employee_id)."""

    def save_slip(self, slip: PayrollSlip, *, period_statuses: AbstractSet[PeriodStatus]) -> PayrollSlip:
        """Insert or regenerate the slip for (period_id, employee_id).

        A regenerated slip keeps its id. Raises SlipNotAvailable unless the
        period status is in `period_statuses` within the same commit.
        """

        raise NotImplementedError

    def get_slip(self, period_id: int, employee_id: int) -> Optional[PayrollSlip]:
        raise NotImplementedError

    def list_slips(self, period_id: int) -> Sequence[PayrollSlip]:
        """Ordered by employee display name, then employee id."""

        raise NotImplementedError
