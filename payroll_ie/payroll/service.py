import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from payroll_ie.core.audit import AuditLogger
from payroll_ie.core.exceptions import PreconditionFailed
from payroll_ie.core.models import PayPeriod, PayrollRun, PayrollStatus, YtdTotals
from payroll_ie.db.repositories import (
    EmployeeRepository, PayrollRunRepository, PayslipRepository, TaxBandRepository
)
from payroll_ie.payroll.engine import PayrollEngine
from payroll_ie.tax.bands import BandProvider

logger = logging.getLogger(__name__)

class _PrefetchedYtd:
    """Prior YTD read on the calling thread so pool workers never share the session."""

    def __init__(self, tax_year: int, totals: Dict[str, YtdTotals]):
        self.tax_year = tax_year
        self._totals = totals

    def get_ytd(self, employee_id: str, tax_year: int) -> YtdTotals:
        if tax_year != self.tax_year:
            return YtdTotals()
        return self._totals.get(employee_id, YtdTotals())

class PayrollService:
    """Runs payroll against the database and commits each run whole."""

    def __init__(self, session: Session, band_provider: Optional[BandProvider] = None,
                 audit_logger: Optional[AuditLogger] = None, max_workers: Optional[int] = None):
        self.session = session
        self.band_provider = band_provider or TaxBandRepository(session)
        self.employees = EmployeeRepository(session)
        self.payslips = PayslipRepository(session)
        self.runs = PayrollRunRepository(session)
        self.audit_logger = audit_logger or AuditLogger()
        self.engine = PayrollEngine(self.band_provider, max_workers=max_workers)

    def process_payroll(self, period: PayPeriod, user_id: Optional[str] = None) -> PayrollRun:
        employees = []
        try:
            if self.runs.exists_for_period(period.start, period.end):
                raise PreconditionFailed(f"Payroll already exists for period {period}")
            employees = self.employees.get_active_employees()
            ytd = _PrefetchedYtd(period.tax_year, {
                e.employee_id: self.payslips.get_ytd(e.employee_id, period.tax_year) for e in employees
            })
            run = self.engine.run_payroll(period, employees, ytd)
            self.runs.save(run)
        except Exception as e:
            self.session.rollback()
            logger.error("Payroll processing failed for %s: %s", period, e)
            self.audit_logger.log_run(None, period.start, period.end, len(employees), False,
                                      user_id=user_id, error_message=str(e))
            raise

        self.audit_logger.log_run(run.run_id, period.start, period.end, len(run.payslips), True,
                                  total_gross=run.totals.gross, total_net=run.totals.net, user_id=user_id)
        logger.info("Payroll run %s committed for %s", run.run_id, period)
        return run

    def get_payroll(self, run_id: str) -> PayrollRun:
        return self.runs.get(run_id)

    def list_payrolls(self, limit: int = 10) -> List[PayrollRun]:
        return self.runs.list_runs(limit)

    def mark_paid(self, run_id: str, user_id: Optional[str] = None) -> PayrollRun:
        run = self.runs.get(run_id)
        old_status = run.status
        run.mark_paid()
        self.runs.update_status(run_id, run.status)
        self.audit_logger.log_status_change(run_id, old_status.value, run.status.value, user_id)
        logger.info("Payroll run %s marked %s", run_id, PayrollStatus.PAID.value)
        return run
