from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PayrollEntry


class EntryRepository(Protocol):
    """Persistence for adjustment rows, unique on (period_id, employee_id).

    Writes check in the same commit that the owning period is still a draft
    and raise PeriodNotEditable otherwise (PeriodNotFound if it is gone).
    """

    def get_entry(self, period_id: int, employee_id: int) -> Optional[PayrollEntry]:
        raise NotImplementedError

    def list_entries(self, period_id: int) -> Sequence[PayrollEntry]:
        """Ordered by employee display name, then employee id."""

        raise NotImplementedError

    def count_entries(self, period_id: int) -> int:
        raise NotImplementedError

    def save_entry(self, entry: PayrollEntry) -> PayrollEntry:
        """Insert or overwrite the row for (period_id, employee_id)."""

        raise NotImplementedError

    def save_entries(self, entries: Sequence[PayrollEntry]) -> Sequence[PayrollEntry]:
        """Like save_entry for several rows, in one commit."""

        raise NotImplementedError

    def delete_entry(self, period_id: int, employee_id: int) -> bool:
        raise NotImplementedError
