from datetime import datetime
from hrms_payroll.extensions import db


class EmployeeCompensation(db.Model):
    """A CTC revision as entered by HR; rows are never edited, only replaced."""
    __tablename__ = "employee_compensation"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"),
                            nullable=False, index=True)
    ctc = db.Column(db.Numeric(14, 2), nullable=False)          # yearly
    effective_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    employee = db.relationship("Employee", back_populates="compensations")

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "ctc": float(self.ctc) if self.ctc is not None else None,
            "effective_date": self.effective_date.isoformat() if self.effective_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
