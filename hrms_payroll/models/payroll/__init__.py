# hrms_payroll/models/payroll/__init__.py
from hrms_payroll.extensions import db  # noqa

from .compensation import EmployeeCompensation
from .salary_slip import SalarySlip

__all__ = ["EmployeeCompensation", "SalarySlip"]
