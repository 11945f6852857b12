"""
Shared payroll primitives: error taxonomy, statutory constants, rounding and
pay-period helpers used by the calculator, the batch generator and the
persistence layer.
"""
from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Mapping, Optional, Tuple

ZERO = Decimal("0")


# ---------- errors ----------

class PayrollError(Exception):
    """Base class for per-record payslip computation failures."""
    code = "PAYROLL_ERROR"

    def __init__(self, message: str, record: Any = None):
        super().__init__(message)
        self.record = record


class InvalidCompensationError(PayrollError):
    code = "INVALID_COMPENSATION"


class InvalidDateError(PayrollError):
    code = "INVALID_EFFECTIVE_DATE"


class NegativeNetSalaryError(PayrollError):
    code = "NEGATIVE_NET_SALARY"

    def __init__(self, message: str, record: Any = None, net_salary: Optional[Decimal] = None):
        super().__init__(message, record)
        self.net_salary = net_salary


# ---------- rounding ----------

def round_nearest(value: Decimal) -> Decimal:
    """Nearest whole rupee, halves away from zero (19933.5 -> 19934, -0.5 -> -1)."""
    return Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


# ---------- constants ----------

def _as_decimal(v) -> Decimal:
    return v if isinstance(v, Decimal) else Decimal(str(v))


def _as_bool(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() not in {"0", "false", "no", "off", ""}
    return bool(v)


@dataclass(frozen=True)
class PayrollConstants:
    employer_pf_monthly: Decimal = Decimal("1800")
    employer_pf_yearly: Decimal = Decimal("21600")
    employee_pf_monthly: Decimal = Decimal("1800")
    professional_tax_monthly: Decimal = Decimal("200")
    basic_ratio: Decimal = Decimal("0.5")
    hra_ratio: Decimal = Decimal("0.4")
    working_days: int = 22
    # legacy slips flowed through with a negative net; default is to refuse them
    reject_negative_net: bool = True
    rounding: Callable[[Decimal], Decimal] = field(default=round_nearest, compare=False)

    # app.config key -> (field name, converter)
    CONFIG_KEYS = {
        "PAYROLL_EMPLOYER_PF_MONTHLY": ("employer_pf_monthly", _as_decimal),
        "PAYROLL_EMPLOYER_PF_YEARLY": ("employer_pf_yearly", _as_decimal),
        "PAYROLL_EMPLOYEE_PF_MONTHLY": ("employee_pf_monthly", _as_decimal),
        "PAYROLL_PROFESSIONAL_TAX_MONTHLY": ("professional_tax_monthly", _as_decimal),
        "PAYROLL_BASIC_RATIO": ("basic_ratio", _as_decimal),
        "PAYROLL_HRA_RATIO": ("hra_ratio", _as_decimal),
        "PAYROLL_WORKING_DAYS": ("working_days", int),
        "PAYROLL_REJECT_NEGATIVE_NET": ("reject_negative_net", _as_bool),
    }

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "PayrollConstants":
        """Build from a Flask config (or any mapping); unset keys keep defaults."""
        kwargs = {}
        for key, (name, conv) in cls.CONFIG_KEYS.items():
            raw = config.get(key)
            if raw is None or raw == "":
                continue
            kwargs[name] = conv(raw)
        return cls(**kwargs)


# ---------- input parsing ----------

_PERIOD_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})(?:-(\d{1,2})(?:[T ].*)?)?\s*$")

# slip amounts are stored as Numeric(14, 2)
MAX_CTC_YEARLY = Decimal("1000000000000")


def parse_ctc(value, record=None) -> Decimal:
    """Yearly CTC as a positive Decimal; anything else is an InvalidCompensationError."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidCompensationError("ctc_yearly is missing", record)
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        raise InvalidCompensationError(f"ctc_yearly must be numeric, got {value!r}", record)
    try:
        amount = Decimal(value.strip()) if isinstance(value, str) else _as_decimal(value)
    except (InvalidOperation, ValueError):
        raise InvalidCompensationError(f"ctc_yearly must be numeric, got {value!r}", record)
    if not amount.is_finite():
        raise InvalidCompensationError(f"ctc_yearly must be finite, got {value!r}", record)
    if amount <= 0:
        raise InvalidCompensationError(f"ctc_yearly must be positive, got {amount}", record)
    if amount >= MAX_CTC_YEARLY:
        raise InvalidCompensationError(f"ctc_yearly must be below {MAX_CTC_YEARLY:,}, got {value!r}", record)
    return amount


def parse_period(value, record=None) -> Tuple[int, int]:
    """(year, month) of an effective date; the day is ignored."""
    if isinstance(value, (date, datetime)):
        return value.year, value.month
    if not isinstance(value, str):
        raise InvalidDateError(f"effective_date must be YYYY-MM[-DD], got {value!r}", record)
    m = _PERIOD_RE.match(value)
    if not m:
        raise InvalidDateError(f"effective_date must be YYYY-MM[-DD], got {value!r}", record)
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidDateError(f"effective_date has no valid month: {value!r}", record)
    return year, month


def parse_effective_date(value, record=None) -> date:
    """Full calendar date; a bare YYYY-MM or an out-of-range day maps to day 1."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    year, month = parse_period(value, record)
    m = _PERIOD_RE.match(value)
    day = int(m.group(3)) if m.group(3) else 1
    if not 1 <= day <= calendar.monthrange(year, month)[1]:
        day = 1
    return date(year, month, day)


# ---------- pay periods ----------

def period_bounds(year: int, month: int) -> Tuple[date, datetime]:
    """First calendar day and last calendar day (23:59:59) of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), datetime.combine(date(year, month, last_day), time(23, 59, 59))
