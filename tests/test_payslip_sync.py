from datetime import date
from decimal import Decimal

from hrms_payroll.extensions import db
from hrms_payroll.models.employee import Employee
from hrms_payroll.models.payroll.compensation import EmployeeCompensation
from hrms_payroll.models.payroll.salary_slip import SalarySlip
from hrms_payroll.services.payroll_common import PayrollConstants
from hrms_payroll.services.payslip_service import PayslipService, summarize_salary_slips


def _employee(code="EMP001", email="e1@test.local"):
    e = Employee(code=code, email=email, first_name="Test", last_name="Emp",
                 department="Finance", position="Analyst")
    db.session.add(e)
    db.session.flush()
    return e


def _slips(emp):
    return (SalarySlip.query.filter_by(employee_id=emp.id)
            .order_by(SalarySlip.year, SalarySlip.month).all())


def test_onboarding_stores_valid_revisions_and_slips(app):
    emp = _employee()
    outcome = PayslipService().record_compensation(emp, [
        {"ctc": 500000, "effective_date": "2024-06-15"},
        {"ctc": "N/A", "effective_date": "2024-08-01"},
        {"ctc": "650000", "effective_date": "2024-10-01"},
    ])
    db.session.commit()

    assert len(outcome.result.emitted) == 2
    assert len(outcome.result.failures) == 1
    assert outcome.result.failures[0].index == 1
    assert "1 of 3 payslips could not be generated" in outcome.warnings

    comps = EmployeeCompensation.query.filter_by(employee_id=emp.id).order_by(EmployeeCompensation.id).all()
    assert [c.effective_date for c in comps] == [date(2024, 6, 15), date(2024, 10, 1)]

    june, octo = _slips(emp)
    assert (june.year, june.month) == (2024, 6)
    assert june.employee_code == "EMP001"
    assert june.employee_name == "Test Emp"
    assert june.department == "Finance"
    assert june.net_salary == Decimal("37867")
    assert june.gross_earnings == Decimal("39867")
    assert june.pay_period_start == date(2024, 6, 1)
    assert june.pay_period_end.day == 30 and june.pay_period_end.hour == 23
    assert june.status == "processed"
    assert june.compensation_id == comps[0].id
    assert octo.compensation_id == comps[1].id


def test_negative_net_revision_is_stored_without_slip(app):
    emp = _employee()
    outcome = PayslipService().record_compensation(emp, [{"ctc": 21600, "effective_date": "2024-06-01"}])
    db.session.commit()

    assert outcome.result.failures[0].code == "NEGATIVE_NET_SALARY"
    assert EmployeeCompensation.query.filter_by(employee_id=emp.id).count() == 1
    assert _slips(emp) == []


def test_negative_net_slip_when_rejection_disabled(app):
    emp = _employee()
    svc = PayslipService(PayrollConstants(reject_negative_net=False))
    svc.record_compensation(emp, [{"ctc": 21600, "effective_date": "2024-06-01"}])
    db.session.commit()
    (slip,) = _slips(emp)
    assert slip.net_salary == Decimal("-2000")


def test_same_period_keeps_last_entered_revision(app):
    emp = _employee()
    outcome = PayslipService().record_compensation(emp, [
        {"ctc": 500000, "effective_date": "2024-06-01"},
        {"ctc": 620000, "effective_date": "2024-06-20"},
    ])
    db.session.commit()

    (slip,) = _slips(emp)
    assert slip.gross_earnings == Decimal("49867")
    assert any("2024-06" in w for w in outcome.warnings)
    assert len(outcome.result.emitted) == 2


def test_replace_removes_stale_periods_and_updates_the_rest(app):
    emp = _employee()
    svc = PayslipService()
    svc.record_compensation(emp, [
        {"ctc": 500000, "effective_date": "2024-06-15"},
        {"ctc": 600000, "effective_date": "2024-08-01"},
    ])
    db.session.commit()

    outcome = svc.replace_compensation(emp, [
        {"ctc": 560000, "effective_date": "2024-06-01"},
        {"ctc": 700000, "effective_date": "2024-09-01"},
    ])
    db.session.commit()

    assert outcome.removed_periods == [(2024, 8)]
    slips = _slips(emp)
    assert [(s.year, s.month) for s in slips] == [(2024, 6), (2024, 9)]
    # 560000 - 21600 = 538400 / 12 = 44866.67 -> 44867
    assert slips[0].gross_earnings == Decimal("44867")
    assert [c.ctc for c in emp.compensations] == [Decimal("560000"), Decimal("700000")]
    assert slips[0].compensation_id == emp.compensations[0].id


def test_replace_drops_slip_when_new_revision_for_month_is_rejected(app):
    emp = _employee()
    svc = PayslipService()
    svc.record_compensation(emp, [{"ctc": 500000, "effective_date": "2024-06-15"}])
    db.session.commit()

    outcome = svc.replace_compensation(emp, [{"ctc": 21600, "effective_date": "2024-06-01"}])
    db.session.commit()

    assert [c.ctc for c in emp.compensations] == [Decimal("21600")]
    assert outcome.result.failures[0].code == "NEGATIVE_NET_SALARY"
    assert outcome.removed_periods == [(2024, 6)]
    assert _slips(emp) == []


def test_replace_with_no_revisions_keeps_history(app):
    emp = _employee()
    svc = PayslipService()
    svc.record_compensation(emp, [{"ctc": 500000, "effective_date": "2024-06-15"}])
    db.session.commit()

    outcome = svc.replace_compensation(emp, [])
    db.session.commit()

    assert outcome.removed_periods == []
    assert outcome.warnings == ["No compensation revisions given; history left unchanged"]
    assert [c.ctc for c in emp.compensations] == [Decimal("500000")]
    (slip,) = _slips(emp)
    assert slip.net_salary == Decimal("37867")


def test_paid_slips_are_never_overwritten_or_removed(app):
    emp = _employee()
    svc = PayslipService()
    svc.record_compensation(emp, [
        {"ctc": 500000, "effective_date": "2024-06-15"},
        {"ctc": 600000, "effective_date": "2024-08-01"},
    ])
    db.session.commit()
    june, aug = _slips(emp)
    svc.mark_paid(june, date(2024, 7, 1))
    svc.mark_paid(aug, date(2024, 9, 1))
    db.session.commit()

    outcome = svc.replace_compensation(emp, [{"ctc": 900000, "effective_date": "2024-06-01"}])
    db.session.commit()

    assert outcome.removed_periods == []
    june, aug = _slips(emp)
    assert june.net_salary == Decimal("37867")
    assert june.status == "paid" and june.paid_date == date(2024, 7, 1)
    assert aug.status == "paid"
    assert any("already paid" in w for w in outcome.warnings)


def test_regenerate_uses_current_constants(app):
    emp = _employee()
    PayslipService().record_compensation(emp, [{"ctc": 500000, "effective_date": "2024-06-15"}])
    db.session.commit()

    svc = PayslipService(PayrollConstants(professional_tax_monthly=Decimal("150")))
    outcome = svc.regenerate_salary_slips(emp)
    db.session.commit()

    assert outcome.result.ok
    (slip,) = _slips(emp)
    assert slip.professional_tax == Decimal("150")
    assert slip.net_salary == Decimal("37917")


def test_constants_follow_app_config(app):
    app.config["PAYROLL_PROFESSIONAL_TAX_MONTHLY"] = "0"
    slip = PayslipService().preview(500000, "2024-06-15", _employee().identity())
    assert slip.net_salary == Decimal("38067")


def test_payslip_dto_shape(app):
    emp = _employee()
    PayslipService().record_compensation(emp, [{"ctc": 500000, "effective_date": "2024-06-15"}])
    db.session.commit()
    (slip,) = _slips(emp)

    dto = PayslipService().build_payslip_dto(slip)
    assert [c["code"] for c in dto["earnings"]] == ["BASIC", "HRA", "SPL_ALLOW"]
    assert [c["code"] for c in dto["deductions"]] == ["PF_EMP", "PT", "TDS"]
    assert dto["earnings_summary"]["gross_earnings"] == 39867.0
    assert dto["earnings_summary"]["other_earnings"] == 0
    assert dto["deductions_summary"]["total_deductions"] == 2000.0
    assert dto["employer_contributions"]["pf_employer"] == 1800.0
    assert dto["totals"] == {"gross_pay": 39867.0, "net_pay": 37867.0, "ctc_monthly": 41667.0}
    assert dto["period"]["period_start"] == "2024-06-01"
    assert dto["period"]["period_end"] == "2024-06-30T23:59:59"
    assert dto["attendance"]["working_days"] == 22


def test_summary(app):
    a = _employee("EMP001", "a@test.local")
    b = _employee("EMP002", "b@test.local")
    svc = PayslipService()
    svc.record_compensation(a, [{"ctc": 500000, "effective_date": "2024-06-15"},
                                {"ctc": 620000, "effective_date": "2024-07-01"}])
    svc.record_compensation(b, [{"ctc": 360000, "effective_date": "2024-06-01"}])
    db.session.commit()

    s = summarize_salary_slips(SalarySlip.query.all())
    assert s["total_employees"] == 2
    assert s["total_slips"] == 3
    assert s["total_net_salary"] == 37867.0 + 47867.0 + 26200.0
    assert s["highest_salary"] == 47867.0
    assert s["lowest_salary"] == 26200.0
    assert s["total_deductions"] == 6000.0
    assert s["average_salary"] == round((37867 + 47867 + 26200) / 3, 2)

    assert summarize_salary_slips([])["total_employees"] == 0
