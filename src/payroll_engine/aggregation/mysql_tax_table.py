from __future__ import annotations

from decimal import Decimal

from ..core.constants import DEPENDENT_DEDUCTION
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, decimal_or_none, decimal_or_zero, fetchall
from .taxes import TaxBracket, TaxTable


def load_tax_table(conn_factory: DatabaseConnection, *, dependent_deduction: Decimal = DEPENDENT_DEDUCTION) -> TaxTable:
    """Build a table from the active rows of payroll_tax_brackets.

    Dates are kept on each bracket; narrow with `TaxTable.for_date`, which
    falls back to the built-in brackets for a tax with no row in force.
    """

    with db_cursor(conn_factory) as (_, cur):
        cur.execute(
            """
            SELECT tax_type, range_start, range_end, rate, deduction, effective_from, effective_to
            FROM payroll_tax_brackets
            WHERE is_active=1
            ORDER BY tax_type, sort_order, range_start
            """
        )
        rows = fetchall(cur)

    by_type: dict[str, list[TaxBracket]] = {"A": [], "B": []}
    for r in rows:
        bracket = TaxBracket(
            range_start=decimal_or_zero(r["range_start"]),
            range_end=decimal_or_none(r.get("range_end")),
            rate=decimal_or_zero(r["rate"]),
            deduction=decimal_or_zero(r.get("deduction")),
            effective_from=r.get("effective_from"),
            effective_to=r.get("effective_to"),
        )
        by_type.setdefault(str(r["tax_type"]).upper(), []).append(bracket)

    return TaxTable(
        tax_a=tuple(by_type["A"]),
        tax_b=tuple(by_type["B"]),
        dependent_deduction=dependent_deduction,
    )
