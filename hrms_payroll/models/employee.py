from datetime import datetime
from hrms_payroll.extensions import db
from hrms_payroll.services.payslip_calculator import EmployeeIdentity

class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)

    code  = db.Column(db.String(32), unique=True, nullable=False)   # EMP001 style, shown on slips
    email = db.Column(db.String(255), unique=True, nullable=False)
    first_name = db.Column(db.String(80), nullable=False)
    last_name  = db.Column(db.String(80), nullable=True)
    department = db.Column(db.String(120), nullable=True)
    position   = db.Column(db.String(120), nullable=True)

    doj = db.Column(db.Date, nullable=True)   # date of joining
    status = db.Column(db.String(16), default="active", nullable=False)  # active/inactive

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    compensations = db.relationship(
        "EmployeeCompensation",
        order_by="EmployeeCompensation.id",
        back_populates="employee",
        cascade="all, delete-orphan",
        lazy="select",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def identity(self) -> EmployeeIdentity:
        return EmployeeIdentity(
            employee_id=self.code,
            name=self.full_name,
            email=self.email,
            department=self.department or "",
            position=self.position or "",
        )
