from datetime import datetime
from hrms_payroll.extensions import db

MONEY_FIELDS = (
    "basic_salary", "hra", "special_allowance", "transport_allowance", "medical_allowance",
    "performance_bonus", "other_allowances", "overtime_hours", "overtime_rate", "overtime_amount",
    "gross_earnings",
    "pf_employee", "esi_employee", "professional_tax", "income_tax", "loan_deduction",
    "advance_deduction", "late_deduction", "other_deductions", "total_deductions",
    "net_salary", "pf_employer", "esi_employer",
)


def _money():
    return db.Column(db.Numeric(14, 2), nullable=False, default=0)


class SalarySlip(db.Model):
    __tablename__ = "salary_slips"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"),
                            nullable=False, index=True)
    compensation_id = db.Column(db.Integer, db.ForeignKey("employee_compensation.id", ondelete="SET NULL"),
                                nullable=True)

    # snapshot of the employee at generation time
    employee_code = db.Column(db.String(32), nullable=False)
    employee_name = db.Column(db.String(200), nullable=False)
    employee_email = db.Column(db.String(255), nullable=False)
    department = db.Column(db.String(120))
    position = db.Column(db.String(120))

    # pay period
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    pay_period_start = db.Column(db.Date, nullable=False)
    pay_period_end = db.Column(db.DateTime, nullable=False)
    working_days = db.Column(db.Integer, nullable=False, default=22)
    present_days = db.Column(db.Integer, nullable=False, default=22)

    # earnings
    basic_salary = _money()
    hra = _money()
    special_allowance = _money()
    transport_allowance = _money()
    medical_allowance = _money()
    performance_bonus = _money()
    other_allowances = _money()
    overtime_hours = _money()
    overtime_rate = _money()
    overtime_amount = _money()
    gross_earnings = _money()

    # deductions
    pf_employee = _money()
    esi_employee = _money()
    professional_tax = _money()
    income_tax = _money()
    loan_deduction = _money()
    advance_deduction = _money()
    late_deduction = _money()
    other_deductions = _money()
    total_deductions = _money()

    net_salary = _money()

    # employer contributions
    pf_employer = _money()
    esi_employer = _money()

    status = db.Column(db.Enum("processed", "paid", name="salary_slip_status_enum"),
                       nullable=False, default="processed")
    generated_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    paid_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "year", "month", name="uq_salary_slip_employee_period"),
        db.Index("ix_salary_slip_period", "year", "month"),
    )

    employee = db.relationship("Employee", lazy="joined")

    def to_row(self):
        row = {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_code": self.employee_code,
            "employee_name": self.employee_name,
            "department": self.department,
            "position": self.position,
            "month": self.month,
            "year": self.year,
            "pay_period_start": self.pay_period_start.isoformat() if self.pay_period_start else None,
            "pay_period_end": self.pay_period_end.isoformat() if self.pay_period_end else None,
            "status": self.status,
            "paid_date": self.paid_date.isoformat() if self.paid_date else None,
        }
        for f in ("gross_earnings", "total_deductions", "net_salary"):
            row[f] = float(getattr(self, f) or 0)
        return row
