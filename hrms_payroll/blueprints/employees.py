from __future__ import annotations
from datetime import date

from flask import Blueprint, request, current_app

from hrms_payroll.extensions import db
from hrms_payroll.common.auth import requires_roles, can_view_employee
from hrms_payroll.common.http import ok, fail
from hrms_payroll.models.employee import Employee
from hrms_payroll.services.payslip_service import PayslipService

bp = Blueprint("employees", __name__, url_prefix="/api/v1/employees")
svc = PayslipService()

# -------- helpers ----------
def _row(e: Employee):
    return {
        "id": e.id,
        "code": e.code,
        "email": e.email,
        "first_name": e.first_name,
        "last_name": e.last_name,
        "full_name": e.full_name,
        "department": e.department,
        "position": e.position,
        "doj": e.doj.isoformat() if e.doj else None,
        "status": e.status,
        "created_at": e.created_at.isoformat() if e.created_at else None,
    }

def _compensation_items(j):
    items = j.get("compensation")
    if items is None:
        return []
    if not isinstance(items, list):
        return None
    return items

# -------- routes ----------
@bp.post("")
@requires_roles("admin")
def create_employee():
    j = request.get_json(silent=True) or {}
    code = (j.get("code") or "").strip()
    email = (j.get("email") or "").strip().lower()
    first_name = (j.get("first_name") or "").strip()

    if not code or not email or not first_name:
        return fail("code, email and first_name are required", 422)

    items = _compensation_items(j)
    if items is None:
        return fail("compensation must be an array of {ctc, effective_date}", 422)

    doj = None
    if j.get("doj"):
        try:
            doj = date.fromisoformat(str(j["doj"]))
        except ValueError:
            return fail("doj must be YYYY-MM-DD", 422)

    if Employee.query.filter((Employee.code == code) | (Employee.email == email)).first():
        return fail("Employee with this code or email already exists", 409)

    emp = Employee(
        code=code,
        email=email,
        first_name=first_name,
        last_name=(j.get("last_name") or "").strip() or None,
        department=(j.get("department") or "").strip() or None,
        position=(j.get("position") or "").strip() or None,
        doj=doj,
        status="active",
    )
    db.session.add(emp)
    db.session.flush()

    # payslips are a best-effort side effect of onboarding; failures come back as warnings
    outcome = svc.record_compensation(emp, items)
    db.session.commit()

    if outcome.warnings:
        current_app.logger.warning("Employee %s created with payroll warnings: %s",
                                   emp.code, "; ".join(outcome.warnings))
    data = _row(emp)
    data["payroll"] = outcome.to_dict()
    return ok(data, 201, warnings=outcome.warnings)

@bp.get("/<int:employee_id>")
@requires_roles("admin", "employee")
def get_employee(employee_id: int):
    if not can_view_employee(employee_id):
        return fail("Forbidden", status=403)
    emp = db.session.get(Employee, employee_id)
    if not emp:
        return fail("Employee not found", 404)
    return ok(_row(emp))

@bp.get("/<int:employee_id>/compensation")
@requires_roles("admin", "employee")
def list_compensation(employee_id: int):
    if not can_view_employee(employee_id):
        return fail("Forbidden", status=403)
    emp = db.session.get(Employee, employee_id)
    if not emp:
        return fail("Employee not found", 404)
    return ok([c.to_dict() for c in emp.compensations])

@bp.put("/<int:employee_id>/compensation")
@requires_roles("admin")
def replace_compensation(employee_id: int):
    emp = db.session.get(Employee, employee_id)
    if not emp:
        return fail("Employee not found", 404)

    j = request.get_json(silent=True) or {}
    if "compensation" not in j:
        return fail("compensation is required", 422)
    items = _compensation_items(j)
    if items is None:
        return fail("compensation must be an array of {ctc, effective_date}", 422)

    # an empty array is a no-op, the history is never cleared through this route
    outcome = svc.replace_compensation(emp, items)
    db.session.commit()

    if outcome.warnings:
        current_app.logger.warning("Compensation of %s replaced with payroll warnings: %s",
                                   emp.code, "; ".join(outcome.warnings))
    return ok({
        "compensation": [c.to_dict() for c in emp.compensations],
        "payroll": outcome.to_dict(),
    }, warnings=outcome.warnings)
