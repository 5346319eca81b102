"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

MIN_REFERENCE_YEAR = 2000
MAX_REFERENCE_YEAR = 2100
MAX_NOTE_LENGTH = 1000

ENTRY_DECIMAL_PLACES = Decimal("0.01")
TOTALS_QUANTUM = Decimal("0.01")

DEFAULT_OVERTIME_HOURLY_RATE = Decimal("0")
DEFAULT_ABSENCE_DAILY_DEDUCTION = Decimal("0")
DEFAULT_TARDINESS_HOURLY_DEDUCTION = Decimal("0")
DEFAULT_EMPLOYER_BURDEN_RATE = Decimal("0")

DEPENDENT_DEDUCTION = Decimal("189.59")

# (range_start, range_end, rate, deduction); range_end None means open-ended.
DEFAULT_TAX_A_BRACKETS = (
    (Decimal("0"), Decimal("1412.00"), Decimal("0.075"), Decimal("0")),
    (Decimal("1412.00"), Decimal("2666.68"), Decimal("0.09"), Decimal("0")),
    (Decimal("2666.68"), Decimal("4000.03"), Decimal("0.12"), Decimal("0")),
    (Decimal("4000.03"), Decimal("7786.02"), Decimal("0.14"), Decimal("0")),
)

DEFAULT_TAX_B_BRACKETS = (
    (Decimal("0"), Decimal("2259.20"), Decimal("0"), Decimal("0")),
    (Decimal("2259.21"), Decimal("2826.65"), Decimal("0.075"), Decimal("169.44")),
    (Decimal("2826.66"), Decimal("3751.05"), Decimal("0.15"), Decimal("381.44")),
    (Decimal("3751.06"), Decimal("4664.68"), Decimal("0.225"), Decimal("662.77")),
    (Decimal("4664.69"), None, Decimal("0.275"), Decimal("896")),
)
