from decimal import Decimal

from hrms_payroll.services.compensation_ledger import CompensationLedger, CompensationRecord
from hrms_payroll.services.payroll_common import (
    InvalidCompensationError,
    InvalidDateError,
    NegativeNetSalaryError,
    PayrollConstants,
)
from hrms_payroll.services.payslip_batch import PayslipBatchGenerator
from hrms_payroll.services.payslip_calculator import EmployeeIdentity, PayslipCalculator

IDENTITY = EmployeeIdentity(employee_id="EMP042", name="Ravi K", email="ravi@test.local")


def _ledger(*pairs):
    return CompensationLedger(CompensationRecord(ctc_yearly=c, effective_date=d) for c, d in pairs)


def test_bad_revision_does_not_block_the_others():
    ledger = _ledger((500000, "2024-06-15"), ("N/A", "2024-08-01"), (650000, "2024-10-01"))

    emitted, failures = PayslipBatchGenerator().generate(ledger, IDENTITY)

    assert len(emitted) == 2
    assert len(failures) == 1
    assert failures[0].index == 1
    assert failures[0].record is ledger.records()[1]
    assert isinstance(failures[0].error, InvalidCompensationError)
    assert failures[0].code == "INVALID_COMPENSATION"

    # same output as if the bad revision were not there
    clean = PayslipBatchGenerator().generate(
        _ledger((500000, "2024-06-15"), (650000, "2024-10-01")), IDENTITY)
    assert emitted == clean.emitted


def test_counts_always_add_up():
    ledger = _ledger(
        (500000, "2024-01-01"), (None, "2024-02-01"), (500000, "not-a-date"),
        (21600, "2024-04-01"), (1200000, "2024-05-01"),
    )
    result = PayslipBatchGenerator().generate(ledger, IDENTITY)
    assert result.total == len(ledger.records()) == 5
    assert len(result.emitted) == 2
    assert [type(f.error) for f in result.failures] == [
        InvalidCompensationError, InvalidDateError, NegativeNetSalaryError]
    assert result.warning_message() == "3 of 5 payslips could not be generated"
    assert not result.ok


def test_negative_net_allowed_when_toggle_off():
    gen = PayslipBatchGenerator(PayslipCalculator(PayrollConstants(reject_negative_net=False)))
    result = gen.generate(_ledger((21600, "2024-06-15")), IDENTITY)
    assert result.ok
    assert result.emitted[0].net_salary == Decimal("-2000")
    assert result.warning_message() is None


def test_multi_revision_produces_distinct_periods():
    ledger = _ledger((500000, "2024-06-15"), (620000, "2024-11-03"))
    emitted, failures = PayslipBatchGenerator().generate(ledger, IDENTITY)

    assert failures == []
    june, nov = emitted
    assert (june.period_start.month, nov.period_start.month) == (6, 11)
    assert june.period_end.day == 30 and nov.period_end.day == 30
    assert june.net_salary == Decimal("37867")
    # 620000 - 21600 = 598400 / 12 = 49866.67 -> 49867
    assert nov.gross_earnings == Decimal("49867")
    assert nov.net_salary == Decimal("47867")


def test_ledger_order_is_kept_not_date_order():
    ledger = _ledger((700000, "2025-01-01"), (500000, "2024-06-01"))
    emitted, _ = PayslipBatchGenerator().generate(ledger, IDENTITY)
    assert [(p.year, p.month) for p in emitted] == [(2025, 1), (2024, 6)]


def test_duplicate_periods_are_flagged_not_dropped():
    ledger = _ledger((500000, "2024-06-01"), (550000, "2024-06-20"), (600000, "2024-07-01"))
    result = PayslipBatchGenerator().generate(ledger, IDENTITY)
    assert len(result.emitted) == 3
    assert result.duplicate_periods() == [(2024, 6)]


def test_unexpected_errors_are_collected_too():
    class Boom(PayslipCalculator):
        def compute(self, record, identity):
            if record.ctc_yearly == 1:
                raise RuntimeError("boom")
            return super().compute(record, identity)

    result = PayslipBatchGenerator(Boom()).generate(_ledger((1, "2024-01-01"), (500000, "2024-02-01")), IDENTITY)
    assert len(result.emitted) == 1
    assert result.failures[0].code == "UNEXPECTED_ERROR"
    assert result.failures[0].to_dict()["message"] == "boom"


def test_empty_ledger_generates_nothing():
    emitted, failures = PayslipBatchGenerator().generate(CompensationLedger(), IDENTITY)
    assert emitted == [] and failures == []
