from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

from .compensation_ledger import CompensationLedger, CompensationRecord
from .payroll_common import PayrollError
from .payslip_calculator import EmployeeIdentity, Payslip, PayslipCalculator

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailureRecord:
    record: CompensationRecord
    error: Exception
    index: int

    @property
    def code(self) -> str:
        return getattr(self.error, "code", "UNEXPECTED_ERROR")

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "compensation_id": self.record.record_id,
            "ctc": str(self.record.ctc_yearly) if self.record.ctc_yearly is not None else None,
            "effective_date": str(self.record.effective_date) if self.record.effective_date is not None else None,
            "code": self.code,
            "message": str(self.error),
        }


class BatchResult(NamedTuple):
    emitted: List[Payslip]
    failures: List[FailureRecord]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def total(self) -> int:
        return len(self.emitted) + len(self.failures)

    def duplicate_periods(self) -> List[Tuple[int, int]]:
        """(year, month) pairs emitted more than once, in first-seen order."""
        counts = Counter(p.period for p in self.emitted)
        return [period for period, n in counts.items() if n > 1]

    def warning_message(self) -> Optional[str]:
        if not self.failures:
            return None
        return f"{len(self.failures)} of {self.total} payslips could not be generated"


@dataclass
class PayslipBatchGenerator:
    """
    Runs the calculator over every revision of a ledger, in ledger order.
    A failing revision is recorded and skipped; it never stops the batch.
    """
    calculator: PayslipCalculator = field(default_factory=PayslipCalculator)

    def generate(self, ledger: CompensationLedger, identity: EmployeeIdentity) -> BatchResult:
        emitted: List[Payslip] = []
        failures: List[FailureRecord] = []

        for idx, record in enumerate(ledger.records()):
            try:
                emitted.append(self.calculator.compute(record, identity))
            except PayrollError as e:
                log.warning("Payslip not generated for employee %s, compensation %s: %s",
                            identity.employee_id, record.label(), e)
                failures.append(FailureRecord(record=record, error=e, index=idx))
            except Exception as e:
                log.exception("Unexpected error generating payslip for employee %s, compensation %s",
                              identity.employee_id, record.label())
                failures.append(FailureRecord(record=record, error=e, index=idx))

        if failures:
            log.info("Payslip batch for employee %s: %d emitted, %d failed",
                     identity.employee_id, len(emitted), len(failures))
        return BatchResult(emitted, failures)
