import threading
from decimal import Decimal

import pytest

from payroll_ie.core.exceptions import ConfigurationMissing, InvalidInput, PreconditionFailed
from payroll_ie.core.models import EmployeeSnapshot, PayPeriod, PayrollStatus, YtdTotals
from payroll_ie.payroll.engine import PayrollEngine, validate_preconditions
from payroll_ie.tax.bands import InMemoryBandProvider, PAYE_BANDS_2025, TaxKind, default_band_provider
from payroll_ie.tax.calculator import TaxCalculator

D = Decimal

class FixedYtd:
    def __init__(self, totals):
        self.totals = totals
        self.calls = []

    def get_ytd(self, employee_id, tax_year):
        self.calls.append((employee_id, tax_year))
        return self.totals.get(employee_id, YtdTotals())

def test_run_payroll_aggregates_roster(january, roster):
    run = PayrollEngine(default_band_provider(), max_workers=2).run_payroll(january, roster)
    assert run.status == PayrollStatus.PROCESSED
    assert [p.employee_id for p in run.payslips] == ["EMP001", "EMP002", "EMP003"]

    by_id = {p.employee_id: p for p in run.payslips}
    assert by_id["EMP001"].net_pay == D("2865.00")
    assert by_id["EMP002"].paye == D("200.00") and by_id["EMP002"].prsi == D("0.00")
    assert by_id["EMP003"].prsi == D("20.00") and by_id["EMP003"].usc == D("2.50")

    assert run.totals.gross == D("4500.00")
    assert run.totals.paye == D("300.00")
    assert run.totals.prsi == D("140.00")
    assert run.totals.usc == D("22.50")
    assert run.totals.net == D("4037.50")
    assert run.totals.net == sum((p.net_pay for p in run.payslips), D("0"))

def test_payslips_match_single_employee_calculation(january, roster):
    run = PayrollEngine(default_band_provider(), max_workers=3).run_payroll(january, roster)
    calc = TaxCalculator(default_band_provider())
    for emp, slip in zip(roster, run.payslips):
        b = calc.calculate(emp, emp.gross_salary, 2025)
        assert (slip.paye, slip.prsi, slip.usc, slip.net_pay) == (b.paye, b.prsi, b.usc, b.net_pay)

def test_ytd_includes_prior_and_current(january, roster):
    prior = YtdTotals(gross=D("3000.00"), paye=D("0.00"), prsi=D("120.00"), usc=D("15.00"))
    ytd = FixedYtd({"EMP001": prior})
    run = PayrollEngine(default_band_provider()).run_payroll(january, roster, ytd)
    slip = run.payslips[0]
    assert slip.ytd_gross == D("6000.00")
    assert slip.ytd_prsi == D("240.00")
    assert slip.ytd_net == D("5730.00")
    assert run.payslips[1].ytd_gross == run.payslips[1].gross_pay
    assert sorted(ytd.calls) == [("EMP001", 2025), ("EMP002", 2025), ("EMP003", 2025)]

def test_empty_roster_is_rejected(january):
    with pytest.raises(PreconditionFailed):
        PayrollEngine(default_band_provider()).run_payroll(january, [])

def test_period_start_after_end_is_rejected(january, roster):
    backwards = PayPeriod(january.end, january.start, january.payment_date)
    with pytest.raises(PreconditionFailed):
        validate_preconditions(backwards, roster)

def test_duplicate_employee_is_rejected(january, roster):
    with pytest.raises(PreconditionFailed):
        PayrollEngine(default_band_provider()).run_payroll(january, roster + [roster[0]])

def test_missing_configuration_aborts_whole_run(january, roster):
    only_paye = InMemoryBandProvider(PAYE_BANDS_2025)
    with pytest.raises(ConfigurationMissing) as exc:
        PayrollEngine(only_paye).run_payroll(january, roster)
    assert exc.value.kind == TaxKind.USC

def test_failure_for_one_employee_aborts_run(january, roster):
    class FailingYtd:
        def get_ytd(self, employee_id, tax_year):
            if employee_id == "EMP002":
                raise InvalidInput("corrupt history for EMP002")
            return YtdTotals()

    with pytest.raises(InvalidInput, match="EMP002"):
        PayrollEngine(default_band_provider()).run_payroll(january, roster, FailingYtd())

def test_bands_are_read_once_per_run(january, roster):
    calls = []
    lock = threading.Lock()

    class CountingProvider(InMemoryBandProvider):
        def get_bands(self, tax_year, kind, as_of=None):
            with lock:
                calls.append(kind)
            return super().get_bands(tax_year, kind, as_of)

    provider = CountingProvider(default_band_provider().bands)
    roster = roster + [EmployeeSnapshot(f"X{i}", D("2500"), "monthly") for i in range(20)]
    PayrollEngine(provider, max_workers=4).run_payroll(january, roster)
    assert sorted(calls) == [TaxKind.PAYE, TaxKind.USC]

def test_run_is_deterministic(january, roster):
    engine = PayrollEngine(default_band_provider(), max_workers=4)
    first = engine.run_payroll(january, roster)
    second = engine.run_payroll(january, roster)
    assert first.payslips == second.payslips
    assert first.totals == second.totals
    assert first.run_id != second.run_id
