import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Protocol, Sequence

from payroll_ie.core.config import settings
from payroll_ie.core.exceptions import PreconditionFailed
from payroll_ie.core.models import EmployeeSnapshot, PayPeriod, PayrollRun, Payslip, YtdTotals
from payroll_ie.tax.bands import BandProvider, BandSnapshot, TaxKind
from payroll_ie.tax.calculator import TaxCalculator

logger = logging.getLogger(__name__)

class YtdProvider(Protocol):
    def get_ytd(self, employee_id: str, tax_year: int) -> YtdTotals:
        """Sum of the employee's committed payslips for the tax year."""
        ...

def validate_preconditions(period: PayPeriod, employees: Sequence[EmployeeSnapshot]):
    if period.start > period.end:
        raise PreconditionFailed("Pay period start date must be before end date")
    if not employees:
        raise PreconditionFailed("No active employees found to process payroll")
    seen = set()
    for e in employees:
        if e.employee_id in seen:
            raise PreconditionFailed(f"Employee {e.employee_id} appears more than once in the roster")
        seen.add(e.employee_id)

class PayrollEngine:
    """
    Builds a complete payroll run in memory. Either every employee's payslip
    is computed and the run comes back processed, or the first failure is
    raised and no run is returned.
    """

    def __init__(self, band_provider: BandProvider, max_workers: Optional[int] = None):
        self.band_provider = band_provider
        self.max_workers = max_workers or settings.PAYROLL_MAX_WORKERS

    def compute_payslip(self, calculator: TaxCalculator, employee: EmployeeSnapshot,
                        period: PayPeriod, ytd_provider: Optional[YtdProvider]) -> Payslip:
        # Configured salary is the period's gross; hours and overtime are not modelled
        gross = employee.gross_salary
        breakdown = calculator.calculate(employee, gross, period.tax_year, as_of=period.end)
        prior = ytd_provider.get_ytd(employee.employee_id, period.tax_year) if ytd_provider else YtdTotals()
        return Payslip.build(employee, breakdown, prior)

    def run_payroll(self, period: PayPeriod, employees: Sequence[EmployeeSnapshot],
                    ytd_provider: Optional[YtdProvider] = None) -> PayrollRun:
        validate_preconditions(period, employees)
        run = PayrollRun(period=period)
        logger.info("Payroll run %s started for %s with %d employees", run.run_id, period, len(employees))

        snapshot = BandSnapshot.load(self.band_provider, period.tax_year,
                                     kinds=(TaxKind.PAYE, TaxKind.USC), as_of=period.end)
        calculator = TaxCalculator(snapshot)

        payslips: List[Payslip] = []
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="payroll") as pool:
            futures = [
                (e, pool.submit(self.compute_payslip, calculator, e, period, ytd_provider))
                for e in employees
            ]
            for employee, future in futures:
                try:
                    payslips.append(future.result())
                except Exception:
                    logger.error("Payroll run %s aborted: tax computation failed for employee %s",
                                 run.run_id, employee.employee_id, exc_info=True)
                    for _, pending in futures:
                        pending.cancel()
                    raise

        run.attach_payslips(payslips)
        run.mark_processed()
        logger.info("Payroll run %s processed: gross=%s net=%s", run.run_id, run.totals.gross, run.totals.net)
        return run
