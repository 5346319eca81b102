"""Plain-text payslip rendering.

The content only depends on the period reference and the stored result, so
regenerating a slip for unchanged results yields the same digest.
"""
from __future__ import annotations

import hashlib
from decimal import Decimal

from ..aggregation.aggregator import round_total
from ..aggregation.model import PayrollResult
from ..periods.model import PayrollPeriod

LABEL_WIDTH = 24
AMOUNT_WIDTH = 14


def _line(label: str, amount: Decimal) -> str:
    return f"{label:<{LABEL_WIDTH}}{round_total(amount):>{AMOUNT_WIDTH},.2f}"


def render_slip(period: PayrollPeriod, result: PayrollResult) -> str:
    rule = "-" * (LABEL_WIDTH + AMOUNT_WIDTH)
    lines = [
        f"Payslip {period.reference_month:02d}/{period.reference_year:04d}",
        f"Tenant: {period.tenant_id}",
        f"Employee: {result.employee_name} (#{result.employee_id})",
        rule,
        "Earnings",
        _line("  Base salary", result.base_gross),
        _line("  Overtime", result.overtime_amount),
        "Deductions",
        _line("  Absences", result.absence_deduction),
        _line("  Tardiness", result.tardiness_deduction),
        rule,
        _line("Gross", result.gross),
        "Withholdings",
        _line("  Tax A", result.tax_a),
        _line("  Tax B", result.tax_b),
        rule,
        _line("Net pay", result.net),
    ]
    return "\n".join(lines) + "\n"


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
