from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from .compensation_ledger import CompensationRecord
from .payroll_common import (
    ZERO,
    NegativeNetSalaryError,
    PayrollConstants,
    parse_ctc,
    parse_period,
    period_bounds,
)


@dataclass(frozen=True)
class EmployeeIdentity:
    employee_id: str
    name: str = ""
    email: str = ""
    department: str = ""
    position: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EmployeeIdentity":
        return cls(
            employee_id=str(d.get("employee_id") or ""),
            name=d.get("name") or "",
            email=d.get("email") or "",
            department=d.get("department") or "",
            position=d.get("position") or "",
        )


@dataclass(frozen=True)
class Payslip:
    employee_id: str
    employee_name: str
    employee_email: str
    department: str
    position: str

    month: int
    year: int
    period_start: date
    period_end: datetime
    working_days: int
    present_days: int

    # Earnings
    basic_salary: Decimal
    hra: Decimal
    special_allowance: Decimal
    transport_allowance: Decimal
    medical_allowance: Decimal
    performance_bonus: Decimal
    other_allowances: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    overtime_amount: Decimal
    gross_earnings: Decimal

    # Deductions
    pf_employee: Decimal
    esi_employee: Decimal
    professional_tax: Decimal
    income_tax: Decimal
    loan_deduction: Decimal
    advance_deduction: Decimal
    late_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal

    net_salary: Decimal

    # Company contributions (for reference)
    pf_employer: Decimal
    esi_employer: Decimal

    status: str = "processed"
    compensation_id: Optional[int] = None

    @property
    def period(self):
        return self.year, self.month

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PayslipCalculator:
    """
    CTC revision -> monthly payslip.

    Gross (yearly) is CTC less the yearly employer PF; the monthly gross is
    split into basic (50%), HRA (40% of basic) and a special allowance that
    absorbs the rounding residue, so earnings always add up to gross exactly.
    PF and professional tax are flat amounts; income tax is shown "as
    applicable" (0).
    """

    def __init__(self, constants: Optional[PayrollConstants] = None):
        self.constants = constants or PayrollConstants()

    def compute(self, record: CompensationRecord, identity: EmployeeIdentity) -> Payslip:
        c = self.constants
        rnd = c.rounding

        year, month = parse_period(record.effective_date, record)
        ctc_yearly = parse_ctc(record.ctc_yearly, record)
        period_start, period_end = period_bounds(year, month)

        gross_yearly = ctc_yearly - c.employer_pf_yearly
        gross_monthly = rnd(gross_yearly / 12)
        basic_salary = rnd(gross_monthly * c.basic_ratio)
        hra = rnd(basic_salary * c.hra_ratio)
        special_allowance = gross_monthly - (basic_salary + hra)

        pf_employee = c.employee_pf_monthly
        professional_tax = c.professional_tax_monthly
        income_tax = ZERO
        total_deductions = pf_employee + professional_tax + income_tax
        net_salary = gross_monthly - total_deductions

        if c.reject_negative_net and net_salary < 0:
            raise NegativeNetSalaryError(
                f"net salary {net_salary} is negative for {record.label()}: "
                f"yearly CTC does not cover employer PF ({c.employer_pf_yearly}) "
                f"and monthly deductions ({total_deductions})",
                record,
                net_salary=net_salary,
            )

        return Payslip(
            employee_id=identity.employee_id,
            employee_name=identity.name,
            employee_email=identity.email,
            department=identity.department,
            position=identity.position,
            month=month,
            year=year,
            period_start=period_start,
            period_end=period_end,
            working_days=c.working_days,
            present_days=c.working_days,
            basic_salary=basic_salary,
            hra=hra,
            special_allowance=special_allowance,
            transport_allowance=ZERO,
            medical_allowance=ZERO,
            performance_bonus=ZERO,
            other_allowances=ZERO,
            overtime_hours=ZERO,
            overtime_rate=ZERO,
            overtime_amount=ZERO,
            gross_earnings=gross_monthly,
            pf_employee=pf_employee,
            esi_employee=ZERO,
            professional_tax=professional_tax,
            income_tax=income_tax,
            loan_deduction=ZERO,
            advance_deduction=ZERO,
            late_deduction=ZERO,
            other_deductions=ZERO,
            total_deductions=total_deductions,
            net_salary=net_salary,
            pf_employer=c.employer_pf_monthly,
            esi_employer=ZERO,
            status="processed",
            compensation_id=record.record_id,
        )
