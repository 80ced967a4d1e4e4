"""
Domain value objects shared by the calculators, the run engine and the
persistence/report collaborators. Money is always Decimal.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from payroll_ie.core.exceptions import InvalidInput, InvalidStatusTransition
from payroll_ie.core.utils import ZERO, round_money, to_decimal

class PayFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: Any) -> "PayFrequency":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInput(f"pay_frequency: expected weekly or monthly, got {value!r}") from None

class PayrollStatus(str, Enum):
    DRAFT = "draft"
    PROCESSED = "processed"
    PAID = "paid"

_STATUS_ORDER = [PayrollStatus.DRAFT, PayrollStatus.PROCESSED, PayrollStatus.PAID]

def _money(value: Any, field_name: str, *, allow_negative: bool = False) -> Decimal:
    amount = to_decimal(value, field_name)
    if not amount.is_finite():
        raise InvalidInput(f"{field_name}: must be finite")
    if not allow_negative and amount < 0:
        raise InvalidInput(f"{field_name}: must not be negative")
    return amount

@dataclass(frozen=True)
class EmployeeSnapshot:
    """Immutable view of an employee for one payroll run."""
    employee_id: str
    gross_salary: Decimal
    pay_frequency: PayFrequency
    tax_credits_annual: Decimal = ZERO
    full_name: Optional[str] = None

    def __post_init__(self):
        if not self.employee_id:
            raise InvalidInput("employee_id is required")
        object.__setattr__(self, "gross_salary", _money(self.gross_salary, "gross_salary"))
        object.__setattr__(self, "pay_frequency", PayFrequency.parse(self.pay_frequency))
        credits = ZERO if self.tax_credits_annual is None else self.tax_credits_annual
        object.__setattr__(self, "tax_credits_annual", _money(credits, "tax_credits_annual"))

@dataclass(frozen=True)
class TaxBreakdown:
    gross_pay: Decimal
    paye: Decimal
    prsi: Decimal
    usc: Decimal
    tax_credits: Decimal
    net_pay: Decimal

    @classmethod
    def zero(cls) -> "TaxBreakdown":
        return cls(ZERO, ZERO, ZERO, ZERO, ZERO, ZERO)

    @property
    def total_deductions(self) -> Decimal:
        return self.paye + self.prsi + self.usc

    def to_dict(self) -> Dict[str, str]:
        return {
            "gross_pay": str(self.gross_pay),
            "paye": str(self.paye),
            "prsi": str(self.prsi),
            "usc": str(self.usc),
            "tax_credits": str(self.tax_credits),
            "total_deductions": str(self.total_deductions),
            "net_pay": str(self.net_pay),
        }

@dataclass(frozen=True)
class YtdTotals:
    """Year-to-date figures accumulated from previously committed payslips."""
    gross: Decimal = ZERO
    paye: Decimal = ZERO
    prsi: Decimal = ZERO
    usc: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.gross - self.paye - self.prsi - self.usc

    def plus(self, breakdown: TaxBreakdown) -> "YtdTotals":
        return YtdTotals(
            gross=self.gross + breakdown.gross_pay,
            paye=self.paye + breakdown.paye,
            prsi=self.prsi + breakdown.prsi,
            usc=self.usc + breakdown.usc,
        )

@dataclass(frozen=True)
class PayPeriod:
    start: date
    end: date
    payment_date: date

    @property
    def tax_year(self) -> int:
        return self.end.year

    def __str__(self):
        return f"{self.start.isoformat()} to {self.end.isoformat()}"

@dataclass(frozen=True)
class Payslip:
    employee_id: str
    gross_pay: Decimal
    paye: Decimal
    prsi: Decimal
    usc: Decimal
    net_pay: Decimal
    tax_credits_used: Decimal
    ytd_gross: Decimal
    ytd_paye: Decimal
    ytd_prsi: Decimal
    ytd_usc: Decimal
    ytd_net: Decimal
    employee_name: Optional[str] = None

    @classmethod
    def build(cls, employee: EmployeeSnapshot, breakdown: TaxBreakdown, prior_ytd: YtdTotals) -> "Payslip":
        ytd = prior_ytd.plus(breakdown)
        return cls(
            employee_id=employee.employee_id,
            employee_name=employee.full_name,
            gross_pay=breakdown.gross_pay,
            paye=breakdown.paye,
            prsi=breakdown.prsi,
            usc=breakdown.usc,
            net_pay=breakdown.net_pay,
            tax_credits_used=breakdown.tax_credits,
            ytd_gross=ytd.gross,
            ytd_paye=ytd.paye,
            ytd_prsi=ytd.prsi,
            ytd_usc=ytd.usc,
            ytd_net=ytd.net,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "gross_pay": self.gross_pay,
            "paye": self.paye,
            "prsi": self.prsi,
            "usc": self.usc,
            "net_pay": self.net_pay,
            "tax_credits_used": self.tax_credits_used,
            "ytd_gross": self.ytd_gross,
            "ytd_paye": self.ytd_paye,
            "ytd_prsi": self.ytd_prsi,
            "ytd_usc": self.ytd_usc,
            "ytd_net": self.ytd_net,
        }

@dataclass(frozen=True)
class PayrollTotals:
    gross: Decimal = ZERO
    paye: Decimal = ZERO
    prsi: Decimal = ZERO
    usc: Decimal = ZERO
    net: Decimal = ZERO

    @classmethod
    def from_payslips(cls, payslips: Iterable[Payslip]) -> "PayrollTotals":
        payslips = list(payslips)
        return cls(
            gross=round_money(sum((p.gross_pay for p in payslips), ZERO)),
            paye=round_money(sum((p.paye for p in payslips), ZERO)),
            prsi=round_money(sum((p.prsi for p in payslips), ZERO)),
            usc=round_money(sum((p.usc for p in payslips), ZERO)),
            net=round_money(sum((p.net_pay for p in payslips), ZERO)),
        )

@dataclass
class PayrollRun:
    period: PayPeriod
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: PayrollStatus = PayrollStatus.DRAFT
    payslips: Tuple[Payslip, ...] = ()
    totals: PayrollTotals = field(default_factory=PayrollTotals)
    processed_at: Optional[datetime] = None

    def __post_init__(self):
        self.payslips = tuple(self.payslips)
        self.totals = PayrollTotals.from_payslips(self.payslips)

    def attach_payslips(self, payslips: Iterable[Payslip]):
        """Replace the payslip set; totals are always a fresh sum."""
        self.payslips = tuple(payslips)
        self.totals = PayrollTotals.from_payslips(self.payslips)

    def add_payslip(self, payslip: Payslip):
        if any(p.employee_id == payslip.employee_id for p in self.payslips):
            raise InvalidInput(f"Payslip for employee {payslip.employee_id} already attached")
        self.attach_payslips(self.payslips + (payslip,))

    def remove_payslip(self, employee_id: str) -> Payslip:
        for p in self.payslips:
            if p.employee_id == employee_id:
                self.attach_payslips(x for x in self.payslips if x.employee_id != employee_id)
                return p
        raise KeyError(employee_id)

    def advance_to(self, target: PayrollStatus):
        target = PayrollStatus(target)
        current_idx = _STATUS_ORDER.index(self.status)
        if _STATUS_ORDER.index(target) != current_idx + 1:
            raise InvalidStatusTransition(self.status, target)
        self.status = target
        if target == PayrollStatus.PROCESSED:
            self.processed_at = datetime.now()

    def mark_processed(self):
        self.advance_to(PayrollStatus.PROCESSED)

    def mark_paid(self):
        self.advance_to(PayrollStatus.PAID)
