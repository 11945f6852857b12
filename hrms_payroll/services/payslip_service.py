from __future__ import annotations

import logging
from dataclasses import dataclass, asdict, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from flask import current_app

from hrms_payroll.extensions import db
from hrms_payroll.common.errors import APIError
from hrms_payroll.models.employee import Employee
from hrms_payroll.models.payroll.compensation import EmployeeCompensation
from hrms_payroll.models.payroll.salary_slip import MONEY_FIELDS, SalarySlip
from .compensation_ledger import CompensationLedger, CompensationRecord
from .payroll_common import PayrollConstants, PayrollError, parse_ctc, parse_effective_date
from .payslip_batch import BatchResult, PayslipBatchGenerator
from .payslip_calculator import Payslip, PayslipCalculator

log = logging.getLogger(__name__)


@dataclass
class PayslipComponent:
    code: str
    name: str
    amount: float

@dataclass
class PayslipDTO:
    employee: Dict[str, Any]
    period: Dict[str, Any]
    attendance: Dict[str, Any]
    earnings: List[PayslipComponent]
    earnings_summary: Dict[str, Any]
    deductions: List[PayslipComponent]
    deductions_summary: Dict[str, Any]
    employer_contributions: Dict[str, Any]
    totals: Dict[str, Any]

@dataclass
class SyncOutcome:
    result: BatchResult
    slips: List[SalarySlip] = field(default_factory=list)
    removed_periods: List[Tuple[int, int]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "generated": len(self.result.emitted),
            "failed": len(self.result.failures),
            "failures": [f.to_dict() for f in self.result.failures],
            "removed_periods": [{"year": y, "month": m} for y, m in self.removed_periods],
        }

# (code, label, Payslip/SalarySlip attribute, always shown)
EARNING_LINES = (
    ("BASIC", "Basic Salary", "basic_salary", True),
    ("HRA", "House Rent Allowance", "hra", True),
    ("SPL_ALLOW", "Special Allowance", "special_allowance", True),
    ("CONVEYANCE", "Transport Allowance", "transport_allowance", False),
    ("MEDICAL", "Medical Allowance", "medical_allowance", False),
    ("BONUS", "Performance Bonus", "performance_bonus", False),
    ("OT", "Overtime", "overtime_amount", False),
    ("OTHER_ALLOW", "Other Allowances", "other_allowances", False),
)
DEDUCTION_LINES = (
    ("PF_EMP", "Provident Fund", "pf_employee", True),
    ("PT", "Professional Tax", "professional_tax", True),
    ("TDS", "Income Tax (as applicable)", "income_tax", True),
    ("ESI_EMP", "ESI", "esi_employee", False),
    ("LOAN", "Loan Recovery", "loan_deduction", False),
    ("ADVANCE", "Salary Advance", "advance_deduction", False),
    ("LATE", "Late Deduction", "late_deduction", False),
    ("OTHER_DED", "Other Deductions", "other_deductions", False),
)


def _amt(v) -> float:
    return float(v or 0)


def _fmt_period(period: Tuple[int, int]) -> str:
    return f"{period[0]}-{period[1]:02d}"


class PayslipService:
    def __init__(self, constants: Optional[PayrollConstants] = None):
        self._constants = constants

    @property
    def constants(self) -> PayrollConstants:
        return self._constants or PayrollConstants.from_config(current_app.config)

    def generator(self) -> PayslipBatchGenerator:
        return PayslipBatchGenerator(PayslipCalculator(self.constants))

    def preview(self, ctc, effective_date, identity) -> Payslip:
        """Compute one slip without touching the database; engine errors propagate."""
        record = CompensationRecord(ctc_yearly=ctc, effective_date=effective_date)
        return PayslipCalculator(self.constants).compute(record, identity)

    # ---------- compensation history ----------

    def _store_revisions(self, employee: Employee, ledger: CompensationLedger) -> CompensationLedger:
        """
        Persist the revisions whose inputs are valid and return the same ledger
        (same order, same length) with stored revisions carrying their row ids.
        Invalid revisions stay in the ledger so the batch reports them.
        """
        out = []
        for rec in ledger.records():
            try:
                ctc = parse_ctc(rec.ctc_yearly, rec)
                eff = parse_effective_date(rec.effective_date, rec)
            except PayrollError:
                out.append(rec)
                continue
            row = EmployeeCompensation(ctc=ctc, effective_date=eff)
            employee.compensations.append(row)
            db.session.flush()
            out.append(CompensationRecord(ctc_yearly=ctc, effective_date=eff, record_id=row.id))
        return CompensationLedger(out)

    def record_compensation(self, employee: Employee, items: Iterable[dict]) -> SyncOutcome:
        """Append revisions (onboarding / new increment) and generate their slips."""
        ledger = self._store_revisions(employee, CompensationLedger.from_payload(items))
        return self._sync(employee, ledger)

    def replace_compensation(self, employee: Employee, items: Iterable[dict]) -> SyncOutcome:
        """
        Replace the whole history. Slips of the new history are upserted, then
        every unpaid slip of a month the new history produced no payslip for is
        removed. An empty list leaves history and slips untouched.
        """
        items = list(items)
        if not items:
            return SyncOutcome(
                result=BatchResult(emitted=[], failures=[]),
                warnings=["No compensation revisions given; history left unchanged"],
            )

        old_rows = list(employee.compensations)
        old_ids = [r.id for r in old_rows]

        if old_ids:
            (SalarySlip.query
             .filter(SalarySlip.compensation_id.in_(old_ids))
             .update({"compensation_id": None}, synchronize_session=False))
        for r in old_rows:
            employee.compensations.remove(r)
        db.session.flush()

        ledger = self._store_revisions(employee, CompensationLedger.from_payload(items))
        outcome = self._sync(employee, ledger)
        keep: Set[Tuple[int, int]] = {p.period for p in outcome.result.emitted}

        stale = (SalarySlip.query.filter_by(employee_id=employee.id)
                 .order_by(SalarySlip.year, SalarySlip.month).all())
        for slip in stale:
            period = (slip.year, slip.month)
            if period in keep:
                continue
            if slip.status == "paid":
                outcome.warnings.append(f"Payslip for {_fmt_period(period)} is already paid and was kept")
                continue
            db.session.delete(slip)
            outcome.removed_periods.append(period)
        if outcome.removed_periods:
            log.info("Removed payslips for employee %s: %s", employee.code,
                     ", ".join(_fmt_period(p) for p in outcome.removed_periods))
        db.session.flush()
        return outcome

    def regenerate_salary_slips(self, employee: Employee) -> SyncOutcome:
        return self._sync(employee, CompensationLedger.from_rows(employee.compensations))

    # ---------- slips ----------

    def _sync(self, employee: Employee, ledger: CompensationLedger) -> SyncOutcome:
        result = self.generator().generate(ledger, employee.identity())
        outcome = SyncOutcome(result=result)

        for f in result.failures:
            outcome.warnings.append(f"Compensation {f.record.label()}: {f.error}")
        if result.failures:
            outcome.warnings.append(result.warning_message())

        for period in result.duplicate_periods():
            outcome.warnings.append(
                f"Several compensation revisions fall in {_fmt_period(period)}; "
                f"the payslip reflects the last one entered"
            )

        for payslip in result.emitted:
            slip, note = self._upsert(employee, payslip)
            if note:
                outcome.warnings.append(note)
            if slip is not None and slip not in outcome.slips:
                outcome.slips.append(slip)
        db.session.flush()
        return outcome

    def _upsert(self, employee: Employee, p: Payslip):
        slip = SalarySlip.query.filter_by(employee_id=employee.id, year=p.year, month=p.month).first()
        if slip is not None and slip.status == "paid":
            return None, f"Payslip for {_fmt_period(p.period)} is already paid and was not regenerated"
        if slip is None:
            slip = SalarySlip(employee_id=employee.id, year=p.year, month=p.month)
            db.session.add(slip)

        slip.compensation_id = p.compensation_id
        slip.employee_code = p.employee_id
        slip.employee_name = p.employee_name
        slip.employee_email = p.employee_email
        slip.department = p.department
        slip.position = p.position
        slip.pay_period_start = p.period_start
        slip.pay_period_end = p.period_end
        slip.working_days = p.working_days
        slip.present_days = p.present_days
        for f in MONEY_FIELDS:
            setattr(slip, f, getattr(p, f))
        slip.status = p.status
        slip.generated_date = datetime.utcnow()
        slip.paid_date = None
        return slip, None

    def mark_paid(self, slip: SalarySlip, paid_on: Optional[date] = None) -> SalarySlip:
        if slip.status == "paid":
            raise APIError("ALREADY_PAID", "Payslip is already marked as paid", 409)
        slip.status = "paid"
        slip.paid_date = paid_on or date.today()
        return slip

    # ---------- read models ----------

    def build_payslip_dto(self, slip: SalarySlip) -> dict:
        earnings = [
            PayslipComponent(code=code, name=name, amount=_amt(getattr(slip, attr)))
            for code, name, attr, always in EARNING_LINES
            if always or getattr(slip, attr)
        ]
        deductions = [
            PayslipComponent(code=code, name=name, amount=_amt(getattr(slip, attr)))
            for code, name, attr, always in DEDUCTION_LINES
            if always or getattr(slip, attr)
        ]
        pf_employer = _amt(slip.pf_employer)
        esi_employer = _amt(slip.esi_employer)

        dto = PayslipDTO(
            employee={
                "id": slip.employee_id,
                "code": slip.employee_code,
                "name": slip.employee_name,
                "email": slip.employee_email,
                "department": slip.department,
                "position": slip.position,
            },
            period={
                "payslip_id": slip.id,
                "year": slip.year,
                "month": slip.month,
                "period_start": slip.pay_period_start.isoformat(),
                "period_end": slip.pay_period_end.isoformat(),
                "generated_date": slip.generated_date.isoformat() if slip.generated_date else None,
                "paid_date": slip.paid_date.isoformat() if slip.paid_date else None,
                "status": slip.status,
            },
            attendance={
                "working_days": slip.working_days,
                "present_days": slip.present_days,
                "overtime_hours": _amt(slip.overtime_hours),
            },
            earnings=earnings,
            earnings_summary={
                "basic": _amt(slip.basic_salary),
                "hra": _amt(slip.hra),
                "special_allowance": _amt(slip.special_allowance),
                "other_earnings": sum(c.amount for c in earnings
                                      if c.code not in {"BASIC", "HRA", "SPL_ALLOW"}),
                "gross_earnings": _amt(slip.gross_earnings),
            },
            deductions=deductions,
            deductions_summary={
                "pf_employee": _amt(slip.pf_employee),
                "professional_tax": _amt(slip.professional_tax),
                "income_tax": _amt(slip.income_tax),
                "other_deductions": sum(c.amount for c in deductions
                                        if c.code not in {"PF_EMP", "PT", "TDS"}),
                "total_deductions": _amt(slip.total_deductions),
            },
            employer_contributions={
                "pf_employer": pf_employer,
                "esi_employer": esi_employer,
                "total_employer_contrib": pf_employer + esi_employer,
            },
            totals={
                "gross_pay": _amt(slip.gross_earnings),
                "net_pay": _amt(slip.net_salary),
                "ctc_monthly": _amt(slip.gross_earnings) + pf_employer + esi_employer,
            },
        )
        return asdict(dto)


def summarize_salary_slips(slips: Iterable[SalarySlip]) -> dict:
    """Totals over a set of slips; average/highest/lowest are on net salary."""
    slips = list(slips)
    if not slips:
        return {
            "total_employees": 0,
            "total_slips": 0,
            "total_gross_salary": 0.0,
            "total_deductions": 0.0,
            "total_net_salary": 0.0,
            "average_salary": 0.0,
            "highest_salary": 0.0,
            "lowest_salary": 0.0,
        }
    nets = [Decimal(s.net_salary or 0) for s in slips]
    total_net = sum(nets, Decimal("0"))
    return {
        "total_employees": len({s.employee_id for s in slips}),
        "total_slips": len(slips),
        "total_gross_salary": float(sum((Decimal(s.gross_earnings or 0) for s in slips), Decimal("0"))),
        "total_deductions": float(sum((Decimal(s.total_deductions or 0) for s in slips), Decimal("0"))),
        "total_net_salary": float(total_net),
        "average_salary": round(float(total_net / len(nets)), 2),
        "highest_salary": float(max(nets)),
        "lowest_salary": float(min(nets)),
    }
