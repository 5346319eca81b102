from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from ...entries.model import PayrollEntry
from ..model import EmployeeBase, PayrollResult


class EmployeeCalculator(ABC):
    """Calculator interface (Strategy Pattern for one employee's payroll line)."""

    @abstractmethod
    def calculate(self, entry: PayrollEntry, base: EmployeeBase, *, on: Optional[date] = None) -> PayrollResult:
        """`on` is the day whose tax brackets apply; None uses the table as given."""
        raise NotImplementedError
