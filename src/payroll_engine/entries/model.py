from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..common.audit import AuditStamp, stamp_dict
from ..common.validators import Number, normalize_note, normalize_quantity
from ..core.constants import MAX_NOTE_LENGTH


def _str_or_none(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


@dataclass(frozen=True)
class EntryFields:
    """Caller-editable part of an entry. Build with `EntryFields.of(...)` to normalize."""

    absences: Optional[Decimal] = None
    credited_absences: Optional[Decimal] = None
    overtime_hours: Optional[Decimal] = None
    tardiness_hours: Optional[Decimal] = None
    note: Optional[str] = None

    @classmethod
    def of(
        cls,
        *,
        absences: Optional[Number] = None,
        credited_absences: Optional[Number] = None,
        overtime_hours: Optional[Number] = None,
        tardiness_hours: Optional[Number] = None,
        note: Optional[str] = None,
    ) -> "EntryFields":
        return cls(
            absences=normalize_quantity(absences, "Absences"),
            credited_absences=normalize_quantity(credited_absences, "Credited absences"),
            overtime_hours=normalize_quantity(overtime_hours, "Overtime hours"),
            tardiness_hours=normalize_quantity(tardiness_hours, "Tardiness hours"),
            note=normalize_note(note, max_length=MAX_NOTE_LENGTH),
        )

    def normalized(self) -> "EntryFields":
        return EntryFields.of(
            absences=self.absences,
            credited_absences=self.credited_absences,
            overtime_hours=self.overtime_hours,
            tardiness_hours=self.tardiness_hours,
            note=self.note,
        )


@dataclass(frozen=True)
class PayrollEntry:
    entry_id: int
    period_id: int
    employee_id: int
    employee_name: str
    fields: EntryFields
    created: AuditStamp
    updated: Optional[AuditStamp] = None

    @property
    def absences(self) -> Optional[Decimal]:
        return self.fields.absences

    @property
    def credited_absences(self) -> Optional[Decimal]:
        return self.fields.credited_absences

    @property
    def overtime_hours(self) -> Optional[Decimal]:
        return self.fields.overtime_hours

    @property
    def tardiness_hours(self) -> Optional[Decimal]:
        return self.fields.tardiness_hours

    @property
    def note(self) -> Optional[str]:
        return self.fields.note

    def sort_key(self) -> tuple[str, int]:
        return (self.employee_name.casefold(), self.employee_id)

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "period_id": self.period_id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "absences": _str_or_none(self.absences),
            "credited_absences": _str_or_none(self.credited_absences),
            "overtime_hours": _str_or_none(self.overtime_hours),
            "tardiness_hours": _str_or_none(self.tardiness_hours),
            "note": self.note,
            "created": stamp_dict(self.created),
            "updated": stamp_dict(self.updated),
        }
