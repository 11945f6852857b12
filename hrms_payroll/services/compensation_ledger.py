from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Tuple

from .payroll_common import PayrollError, parse_effective_date

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompensationRecord:
    """
    One dated CTC revision. Values are kept as supplied; validation happens
    when a payslip is computed so a bad revision fails on its own.
    """
    ctc_yearly: Any
    effective_date: Any
    record_id: Optional[int] = None

    def label(self) -> str:
        ref = f"#{self.record_id} " if self.record_id is not None else ""
        return f"{ref}(ctc={self.ctc_yearly!r}, effective_date={self.effective_date!r})"


class CompensationLedger:
    """Compensation revisions of one employee, in the order they were entered."""

    def __init__(self, records: Iterable[CompensationRecord] = ()):
        self._records: Tuple[CompensationRecord, ...] = tuple(records)

    @classmethod
    def from_rows(cls, rows) -> "CompensationLedger":
        """From EmployeeCompensation rows (or anything with ctc/effective_date/id)."""
        ordered = sorted(rows, key=lambda r: (r.id is None, r.id or 0))
        return cls(
            CompensationRecord(ctc_yearly=r.ctc, effective_date=r.effective_date, record_id=r.id)
            for r in ordered
        )

    @classmethod
    def from_payload(cls, items) -> "CompensationLedger":
        """From request JSON: [{"ctc": ..., "effective_date": ...}, ...]."""
        out = []
        for it in items or []:
            if not isinstance(it, dict):
                it = {}
            out.append(CompensationRecord(
                ctc_yearly=it.get("ctc", it.get("ctc_yearly")),
                effective_date=it.get("effective_date"),
            ))
        return cls(out)

    def records(self) -> Tuple[CompensationRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    @property
    def is_empty(self) -> bool:
        return not self._records

    def active_at(self, on) -> Optional[CompensationRecord]:
        """
        The revision in force on `on`: greatest effective date not after it,
        later entries winning ties. Unparseable revisions are ignored here.
        """
        if isinstance(on, datetime):
            on = on.date()
        best = None
        best_key = None
        for idx, rec in enumerate(self._records):
            try:
                eff = parse_effective_date(rec.effective_date, rec)
            except PayrollError as e:
                log.warning("Skipping compensation %s in active_at: %s", rec.label(), e)
                continue
            if eff > on:
                continue
            key = (eff, idx)
            if best_key is None or key > best_key:
                best, best_key = rec, key
        return best
