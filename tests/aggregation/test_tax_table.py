from datetime import date, datetime, timezone
from decimal import Decimal

from payroll_engine.aggregation.calculator.standard_calculator import StandardEmployeeCalculator
from payroll_engine.aggregation.model import EmployeeBase
from payroll_engine.aggregation.taxes import TaxBracket, TaxTable, bracket_tax, default_tax_table, progressive_tax
from payroll_engine.common.audit import AuditStamp
from payroll_engine.entries.model import EntryFields, PayrollEntry


def test_progressive_tax_sums_each_slice():
    table = default_tax_table()

    # 1412 * 7.5% + 1254.68 * 9% + 333.32 * 12%
    assert table.withhold_a(Decimal("3000")) == Decimal("258.8196")
    assert table.withhold_a(Decimal("0")) == Decimal("0")


def test_progressive_tax_is_capped_at_last_bracket():
    table = default_tax_table()

    assert table.withhold_a(Decimal("10000")) == table.withhold_a(Decimal("7786.02"))


def test_bracket_tax_uses_rate_minus_deduction():
    table = default_tax_table()

    assert table.withhold_b(Decimal("3000"), Decimal("258.8196")) == Decimal("36.1485300")
    assert table.withhold_b(Decimal("3000"), Decimal("258.8196"), dependents=1) == Decimal("21.9292800")
    assert table.withhold_b(Decimal("2000"), Decimal("0")) == Decimal("0")


def test_bracket_tax_never_negative():
    brackets = [TaxBracket(Decimal("0"), None, Decimal("0.1"), Decimal("50"))]

    assert bracket_tax(Decimal("100"), brackets) == Decimal("0")
    assert progressive_tax(Decimal("100"), []) == Decimal("0")


def test_calculator_uses_tax_table_when_withholdings_not_supplied():
    entry = PayrollEntry(
        entry_id=1,
        period_id=1,
        employee_id=1,
        employee_name="A",
        fields=EntryFields(),
        created=AuditStamp(actor_id=1, at=datetime(2025, 3, 31, tzinfo=timezone.utc)),
    )
    calc = StandardEmployeeCalculator(tax_table=default_tax_table())

    result = calc.calculate(entry, EmployeeBase(Decimal("3000")))
    assert result.tax_a == Decimal("258.8196")
    assert result.tax_b == Decimal("36.1485300")

    # an externally supplied tax A feeds the tax B base
    supplied = calc.calculate(entry, EmployeeBase(Decimal("3000"), tax_a=Decimal("0")))
    assert supplied.tax_b == Decimal("3000") * Decimal("0.15") - Decimal("381.44")


OLD_A = TaxBracket(Decimal("0"), None, Decimal("0.10"), effective_to=date(2024, 12, 31))
NEW_A = TaxBracket(Decimal("0"), None, Decimal("0.20"), effective_from=date(2025, 1, 1))


def test_for_date_keeps_brackets_in_force():
    table = TaxTable(tax_a=(OLD_A, NEW_A), tax_b=default_tax_table().tax_b)

    assert table.for_date(date(2024, 12, 31)).tax_a == (OLD_A,)
    assert table.for_date(date(2025, 1, 1)).tax_a == (NEW_A,)
    assert table.for_date(date(2025, 3, 31)).withhold_a(Decimal("1000")) == Decimal("200.00")


def test_for_date_falls_back_to_defaults_when_nothing_is_in_force():
    expired = TaxBracket(Decimal("0"), None, Decimal("0.5"), effective_to=date(2020, 1, 31))
    table = TaxTable(tax_a=(expired,), tax_b=())

    on_date = table.for_date(date(2025, 3, 31))

    assert on_date.tax_a == default_tax_table().tax_a
    assert on_date.tax_b == default_tax_table().tax_b


def test_calculator_picks_brackets_for_the_given_day():
    entry = PayrollEntry(
        entry_id=1,
        period_id=1,
        employee_id=1,
        employee_name="A",
        fields=EntryFields(),
        created=AuditStamp(actor_id=1, at=datetime(2025, 3, 31, tzinfo=timezone.utc)),
    )
    table = TaxTable(tax_a=(OLD_A, NEW_A), tax_b=())
    calc = StandardEmployeeCalculator(tax_table=table)
    base = EmployeeBase(Decimal("1000"), tax_b=Decimal("0"))

    assert calc.calculate(entry, base, on=date(2024, 6, 30)).tax_a == Decimal("100.00")
    assert calc.calculate(entry, base, on=date(2025, 6, 30)).tax_a == Decimal("200.00")
