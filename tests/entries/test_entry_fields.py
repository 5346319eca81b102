from decimal import Decimal

import pytest

from payroll_engine.common.validators import normalize_note, normalize_quantity, require_reference, to_decimal
from payroll_engine.core.exceptions import ValidationError
from payroll_engine.entries.model import EntryFields


def test_entry_fields_round_quantities_to_two_places():
    fields = EntryFields.of(overtime_hours="10.005", absences=2, tardiness_hours=Decimal("0.5"))

    assert fields.overtime_hours == Decimal("10.01")
    assert fields.absences == Decimal("2.00")
    assert fields.tardiness_hours == Decimal("0.50")
    assert fields.credited_absences is None


def test_entry_fields_reject_floats_and_negatives():
    with pytest.raises(ValidationError):
        EntryFields.of(overtime_hours=1.5)

    with pytest.raises(ValidationError):
        EntryFields.of(absences="-1")


def test_entry_fields_blank_values_mean_not_set():
    fields = EntryFields.of(overtime_hours="  ", note="   ")

    assert fields == EntryFields()


def test_normalized_makes_equivalent_inputs_equal():
    raw = EntryFields(overtime_hours=Decimal("10"), note=" late shift ")

    assert raw.normalized() == EntryFields.of(overtime_hours="10.00", note="late shift")


def test_note_length_is_limited():
    assert normalize_note("x" * 10, max_length=10) == "x" * 10
    with pytest.raises(ValidationError):
        normalize_note("x" * 11, max_length=10)


def test_require_reference_bounds():
    assert require_reference("3", 2025) == (3, 2025)

    for month, year in [(0, 2025), (13, 2025), (1, 1999), (1, 2101), ("x", 2025)]:
        with pytest.raises(ValidationError):
            require_reference(month, year)


def test_to_decimal_rejects_non_numbers():
    with pytest.raises(ValidationError):
        to_decimal("abc", "Amount")
    with pytest.raises(ValidationError):
        to_decimal("NaN", "Amount")
    assert normalize_quantity(None, "Amount") is None
