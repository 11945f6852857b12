from __future__ import annotations
from datetime import date
from decimal import Decimal

from flask import Blueprint, request

from hrms_payroll.extensions import db
from hrms_payroll.common.auth import requires_roles, is_admin, own_employee_id, can_view_employee
from hrms_payroll.common.http import ok, fail
from hrms_payroll.common.paging import page_limit
from hrms_payroll.models.payroll.salary_slip import SalarySlip
from hrms_payroll.services.payslip_calculator import EmployeeIdentity
from hrms_payroll.services.payslip_service import PayslipService, summarize_salary_slips

bp = Blueprint("payroll_payslips", __name__, url_prefix="/api/v1/payroll/payslips")
svc = PayslipService()


def _filtered_query():
    """
    Slip query narrowed by ?employee_id, ?year, ?month, ?status.
    Non-admins are pinned to their own employee_id. Returns (query, error_response).
    """
    q = SalarySlip.query
    args = {}
    for key in ("employee_id", "year", "month"):
        raw = request.args.get(key)
        if raw in (None, ""):
            continue
        try:
            args[key] = int(raw)
        except ValueError:
            return None, fail(f"{key} must be an integer", 400)

    if "month" in args and not 1 <= args["month"] <= 12:
        return None, fail("month must be between 1 and 12", 400)

    if not is_admin():
        own = own_employee_id()
        if own is None:
            return None, fail("Forbidden", status=403)
        if args.get("employee_id") not in (None, own):
            return None, fail("Forbidden", status=403)
        args["employee_id"] = own

    if "employee_id" in args:
        q = q.filter(SalarySlip.employee_id == args["employee_id"])
    if "year" in args:
        q = q.filter(SalarySlip.year == args["year"])
    if "month" in args:
        q = q.filter(SalarySlip.month == args["month"])

    status = request.args.get("status")
    if status:
        if status not in ("processed", "paid"):
            return None, fail("status must be processed or paid", 400)
        q = q.filter(SalarySlip.status == status)
    return q, None


@bp.get("")
@requires_roles("admin", "employee")
def list_payslips():
    q, err = _filtered_query()
    if err:
        return err
    page, size = page_limit()
    q = q.order_by(SalarySlip.year.desc(), SalarySlip.month.desc(), SalarySlip.id.desc())
    pagination = q.paginate(page=page, per_page=size, error_out=False)
    return ok([s.to_row() for s in pagination.items], page=page, size=size, total=pagination.total)


@bp.get("/summary")
@requires_roles("admin")
def payslip_summary():
    q, err = _filtered_query()
    if err:
        return err
    return ok(summarize_salary_slips(q.all()))


@bp.get("/<int:slip_id>")
@requires_roles("admin", "employee")
def get_payslip(slip_id: int):
    slip = db.session.get(SalarySlip, slip_id)
    if not slip or not can_view_employee(slip.employee_id):
        # same answer for "missing" and "not yours"
        return fail("Payslip not found", 404)
    return ok(svc.build_payslip_dto(slip))


@bp.post("/<int:slip_id>/mark-paid")
@requires_roles("admin")
def mark_paid(slip_id: int):
    slip = db.session.get(SalarySlip, slip_id)
    if not slip:
        return fail("Payslip not found", 404)

    j = request.get_json(silent=True) or {}
    paid_on = None
    if j.get("paid_date"):
        try:
            paid_on = date.fromisoformat(str(j["paid_date"]))
        except ValueError:
            return fail("paid_date must be YYYY-MM-DD", 422)

    svc.mark_paid(slip, paid_on)
    db.session.commit()
    return ok(slip.to_row())


@bp.post("/preview")
@requires_roles("admin")
def preview_payslip():
    """Compute a payslip for {ctc, effective_date} without saving it."""
    j = request.get_json(silent=True) or {}
    identity = EmployeeIdentity.from_dict(j.get("employee") or {})
    # PayrollError propagates to the 422 handler
    slip = svc.preview(j.get("ctc"), j.get("effective_date"), identity)
    data = slip.to_dict()
    for k, v in list(data.items()):
        if hasattr(v, "isoformat"):
            data[k] = v.isoformat()
        elif isinstance(v, Decimal):
            data[k] = float(v)
    return ok(data)
