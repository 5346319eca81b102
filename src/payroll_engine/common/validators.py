from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from ..core.constants import ENTRY_DECIMAL_PLACES, MAX_REFERENCE_YEAR, MIN_REFERENCE_YEAR
from ..core.exceptions import ValidationError

Number = Union[Decimal, int, str]


def require_reference(month: int, year: int) -> tuple[int, int]:
    try:
        month, year = int(month), int(year)
    except (TypeError, ValueError):
        raise ValidationError("Reference month/year must be integers")
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid reference month: {month}")
    if not MIN_REFERENCE_YEAR <= year <= MAX_REFERENCE_YEAR:
        raise ValidationError(f"Invalid reference year: {year}")
    return month, year


def to_decimal(value: Number, field_name: str) -> Decimal:
    if isinstance(value, float):
        # floats carry binary noise into money arithmetic
        raise ValidationError(f"{field_name} must be a Decimal, int or numeric string, not float")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field_name} is not a number: {value!r}")
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite")
    return result


def normalize_quantity(value: Optional[Number], field_name: str) -> Optional[Decimal]:
    """Round an entry quantity to two places (half-up); None stays None."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    result = to_decimal(value, field_name)
    if result < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return result.quantize(ENTRY_DECIMAL_PLACES, rounding=ROUND_HALF_UP)


def normalize_note(value: Optional[str], *, max_length: int) -> Optional[str]:
    note = (value or "").strip()
    if not note:
        return None
    if len(note) > max_length:
        raise ValidationError(f"Notes must be at most {max_length} characters")
    return note
