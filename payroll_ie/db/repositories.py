"""
SQLAlchemy repositories for tax bands, employees, payslips and payroll runs.
These are the external collaborators the calculation core reads from and
hands finished runs to; the core itself never touches a session.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import extract, func, select
from sqlalchemy.orm import Session

from payroll_ie.core.exceptions import PayrollNotFound
from payroll_ie.core.models import (
    EmployeeSnapshot, PayPeriod, PayrollRun, PayrollStatus, Payslip, YtdTotals
)
from payroll_ie.core.utils import ZERO, round_money, to_decimal
from payroll_ie.db.models import EmployeeRecord, PayrollRunRecord, PayslipRecord, TaxBandRecord
from payroll_ie.tax.bands import TaxBand, TaxKind, select_active_bands

def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return round_money(to_decimal(value))

class BaseRepository:
    """Base repository holding the unit-of-work session."""

    def __init__(self, session: Session):
        self.session = session

class TaxBandRepository(BaseRepository):
    """Tax band table; implements BandProvider."""

    @staticmethod
    def _to_band(record: TaxBandRecord) -> TaxBand:
        return TaxBand(
            tax_year=record.tax_year,
            kind=TaxKind(record.tax_kind),
            name=record.band_name,
            lower=_money(record.income_lower),
            upper=None if record.income_upper is None else _money(record.income_upper),
            rate=to_decimal(record.rate, "rate"),
            is_active=bool(record.is_active),
            effective_from=record.effective_from,
            effective_to=record.effective_to,
        )

    def get_bands(self, tax_year: int, kind: TaxKind, as_of: Optional[date] = None) -> List[TaxBand]:
        kind = TaxKind.parse(kind)
        stmt = (
            select(TaxBandRecord)
            .where(TaxBandRecord.tax_year == tax_year,
                   TaxBandRecord.tax_kind == kind.value,
                   TaxBandRecord.is_active.is_(True))
            .order_by(TaxBandRecord.income_lower)
        )
        records = self.session.execute(stmt).scalars().all()
        return select_active_bands((self._to_band(r) for r in records), tax_year, kind, as_of)

    def bulk_upsert(self, bands: Iterable[TaxBand]) -> Dict[str, int]:
        """Upsert bands keyed by (year, kind, lower bound, effective_from)."""
        created = updated = 0
        for band in bands:
            existing = self.session.execute(
                select(TaxBandRecord).where(
                    TaxBandRecord.tax_year == band.tax_year,
                    TaxBandRecord.tax_kind == band.kind.value,
                    TaxBandRecord.income_lower == band.lower,
                    TaxBandRecord.effective_from == band.effective_from
                    if band.effective_from else TaxBandRecord.effective_from.is_(None),
                )
            ).scalars().first()
            if existing is None:
                existing = TaxBandRecord(tax_year=band.tax_year, tax_kind=band.kind.value,
                                         income_lower=band.lower, effective_from=band.effective_from)
                self.session.add(existing)
                created += 1
            else:
                updated += 1
            existing.band_name = band.name
            existing.income_upper = band.upper
            existing.rate = band.rate
            existing.is_active = band.is_active
            existing.effective_to = band.effective_to
        self.session.commit()
        return {"created": created, "updated": updated}

class EmployeeRepository(BaseRepository):

    @staticmethod
    def _to_snapshot(record: EmployeeRecord) -> EmployeeSnapshot:
        return EmployeeSnapshot(
            employee_id=record.id,
            full_name=record.full_name,
            gross_salary=_money(record.gross_salary),
            pay_frequency=record.pay_frequency,
            tax_credits_annual=_money(record.tax_credits_annual),
        )

    def get_active_employees(self) -> List[EmployeeSnapshot]:
        stmt = select(EmployeeRecord).where(EmployeeRecord.is_active.is_(True)).order_by(EmployeeRecord.id)
        return [self._to_snapshot(r) for r in self.session.execute(stmt).scalars().all()]

    def bulk_upsert(self, employees: Iterable[EmployeeSnapshot]) -> Dict[str, int]:
        created = updated = 0
        for emp in employees:
            record = self.session.get(EmployeeRecord, emp.employee_id)
            if record is None:
                record = EmployeeRecord(id=emp.employee_id, is_active=True)
                self.session.add(record)
                created += 1
            else:
                updated += 1
            record.full_name = emp.full_name
            record.gross_salary = emp.gross_salary
            record.pay_frequency = emp.pay_frequency.value
            record.tax_credits_annual = emp.tax_credits_annual
        self.session.commit()
        return {"created": created, "updated": updated}

    def deactivate(self, employee_id: str) -> bool:
        record = self.session.get(EmployeeRecord, employee_id)
        if record is None:
            return False
        record.is_active = False
        self.session.commit()
        return True

class PayslipRepository(BaseRepository):
    """Implements YtdProvider: sums are re-derived from history on every call."""

    def get_ytd(self, employee_id: str, tax_year: int) -> YtdTotals:
        stmt = (
            select(
                func.sum(PayslipRecord.gross_pay),
                func.sum(PayslipRecord.paye_deduction),
                func.sum(PayslipRecord.prsi_deduction),
                func.sum(PayslipRecord.usc_deduction),
            )
            .join(PayrollRunRecord, PayslipRecord.payroll_run_id == PayrollRunRecord.id)
            .where(PayslipRecord.employee_id == employee_id,
                   extract("year", PayrollRunRecord.pay_period_end) == tax_year,
                   PayrollRunRecord.status.in_([PayrollStatus.PROCESSED.value, PayrollStatus.PAID.value]))
        )
        gross, paye, prsi, usc = self.session.execute(stmt).one()
        return YtdTotals(gross=_money(gross), paye=_money(paye), prsi=_money(prsi), usc=_money(usc))

    def get_for_employee(self, employee_id: str) -> List[Payslip]:
        stmt = (
            select(PayslipRecord)
            .join(PayrollRunRecord, PayslipRecord.payroll_run_id == PayrollRunRecord.id)
            .where(PayslipRecord.employee_id == employee_id)
            .order_by(PayrollRunRecord.pay_period_end.desc())
        )
        return [PayrollRunRepository._to_payslip(r) for r in self.session.execute(stmt).scalars().all()]

class PayrollRunRepository(BaseRepository):

    @staticmethod
    def _to_payslip(record: PayslipRecord) -> Payslip:
        return Payslip(
            employee_id=record.employee_id,
            employee_name=record.employee_name,
            gross_pay=_money(record.gross_pay),
            paye=_money(record.paye_deduction),
            prsi=_money(record.prsi_deduction),
            usc=_money(record.usc_deduction),
            net_pay=_money(record.net_pay),
            tax_credits_used=_money(record.tax_credits_used),
            ytd_gross=_money(record.ytd_gross),
            ytd_paye=_money(record.ytd_paye),
            ytd_prsi=_money(record.ytd_prsi),
            ytd_usc=_money(record.ytd_usc),
            ytd_net=_money(record.ytd_net),
        )

    def _to_run(self, record: PayrollRunRecord) -> PayrollRun:
        return PayrollRun(
            run_id=record.id,
            period=PayPeriod(record.pay_period_start, record.pay_period_end, record.payment_date),
            status=PayrollStatus(record.status),
            payslips=[self._to_payslip(p) for p in record.payslips],
            processed_at=record.processed_date,
        )

    def exists_for_period(self, start: date, end: date) -> bool:
        stmt = select(PayrollRunRecord.id).where(PayrollRunRecord.pay_period_start == start,
                                                 PayrollRunRecord.pay_period_end == end)
        return self.session.execute(stmt).first() is not None

    def save(self, run: PayrollRun) -> PayrollRun:
        """Persist a complete run and its payslips in one transaction."""
        record = PayrollRunRecord(
            id=run.run_id,
            pay_period_start=run.period.start,
            pay_period_end=run.period.end,
            payment_date=run.period.payment_date,
            status=run.status.value,
            total_gross=run.totals.gross,
            total_paye=run.totals.paye,
            total_prsi=run.totals.prsi,
            total_usc=run.totals.usc,
            total_net=run.totals.net,
            processed_date=run.processed_at,
        )
        for p in run.payslips:
            record.payslips.append(PayslipRecord(
                employee_id=p.employee_id,
                employee_name=p.employee_name,
                gross_pay=p.gross_pay,
                paye_deduction=p.paye,
                prsi_deduction=p.prsi,
                usc_deduction=p.usc,
                net_pay=p.net_pay,
                tax_credits_used=p.tax_credits_used,
                ytd_gross=p.ytd_gross,
                ytd_paye=p.ytd_paye,
                ytd_prsi=p.ytd_prsi,
                ytd_usc=p.ytd_usc,
                ytd_net=p.ytd_net,
            ))
        try:
            self.session.add(record)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return run

    def get(self, run_id: str) -> PayrollRun:
        record = self.session.get(PayrollRunRecord, run_id)
        if record is None:
            raise PayrollNotFound(run_id)
        return self._to_run(record)

    def list_runs(self, limit: int = 10) -> List[PayrollRun]:
        stmt = select(PayrollRunRecord).order_by(PayrollRunRecord.pay_period_end.desc()).limit(limit)
        return [self._to_run(r) for r in self.session.execute(stmt).scalars().all()]

    def update_status(self, run_id: str, status: PayrollStatus) -> None:
        record = self.session.get(PayrollRunRecord, run_id)
        if record is None:
            raise PayrollNotFound(run_id)
        record.status = PayrollStatus(status).value
        self.session.commit()

    def summary(self) -> List[Dict[str, Any]]:
        """Lightweight listing of all runs for dashboards."""
        rows = self.session.execute(
            select(PayrollRunRecord.id, PayrollRunRecord.pay_period_start, PayrollRunRecord.pay_period_end,
                   PayrollRunRecord.status, PayrollRunRecord.total_gross, PayrollRunRecord.total_net)
            .order_by(PayrollRunRecord.pay_period_end.desc())
        ).all()
        return [
            {"run_id": r[0], "period_start": r[1], "period_end": r[2], "status": r[3],
             "total_gross": _money(r[4]), "total_net": _money(r[5])}
            for r in rows
        ]
