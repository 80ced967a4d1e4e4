from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, Numeric, ForeignKey, Date, DateTime, Boolean, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from payroll_ie.db.session import Base

MONEY = Numeric(15, 2, asdecimal=True)

class TaxBandRecord(Base):
    __tablename__ = "tax_bands"
    id = Column(Integer, primary_key=True, autoincrement=True)
    tax_year = Column(Integer, nullable=False)
    tax_kind = Column(String(10), nullable=False)
    band_name = Column(String(50), nullable=True)
    income_lower = Column(MONEY, nullable=False)
    income_upper = Column(MONEY, nullable=True)  # NULL means unbounded
    rate = Column(Numeric(9, 6, asdecimal=True), nullable=False)
    is_active = Column(Boolean, default=True)
    effective_from = Column(Date, nullable=True)
    effective_to = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    last_updated = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        Index("ix_tax_bands_year_kind", "tax_year", "tax_kind"),
    )

class EmployeeRecord(Base):
    __tablename__ = "employees"
    id = Column(String(36), primary_key=True)
    full_name = Column(String(200), nullable=True)
    gross_salary = Column(MONEY, nullable=False)
    pay_frequency = Column(String(10), nullable=False)
    tax_credits_annual = Column(MONEY, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)

    payslips = relationship("PayslipRecord", back_populates="employee")

class PayrollRunRecord(Base):
    __tablename__ = "payroll_runs"
    id = Column(String(36), primary_key=True)
    pay_period_start = Column(Date, nullable=False)
    pay_period_end = Column(Date, nullable=False)
    payment_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)
    total_gross = Column(MONEY, default=0)
    total_paye = Column(MONEY, default=0)
    total_prsi = Column(MONEY, default=0)
    total_usc = Column(MONEY, default=0)
    total_net = Column(MONEY, default=0)
    processed_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    payslips = relationship("PayslipRecord", back_populates="payroll_run",
                            cascade="all, delete-orphan", order_by="PayslipRecord.id")

    __table_args__ = (
        UniqueConstraint("pay_period_start", "pay_period_end", name="uq_payroll_runs_period"),
    )

class PayslipRecord(Base):
    __tablename__ = "payslips"
    id = Column(Integer, primary_key=True, autoincrement=True)
    payroll_run_id = Column(String(36), ForeignKey("payroll_runs.id"), nullable=False)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False)
    employee_name = Column(String(200), nullable=True)
    gross_pay = Column(MONEY, nullable=False)
    paye_deduction = Column(MONEY, nullable=False)
    prsi_deduction = Column(MONEY, nullable=False)
    usc_deduction = Column(MONEY, nullable=False)
    net_pay = Column(MONEY, nullable=False)
    tax_credits_used = Column(MONEY, default=0)
    ytd_gross = Column(MONEY, nullable=False)
    ytd_paye = Column(MONEY, nullable=False)
    ytd_prsi = Column(MONEY, nullable=False)
    ytd_usc = Column(MONEY, nullable=False)
    ytd_net = Column(MONEY, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    payroll_run = relationship("PayrollRunRecord", back_populates="payslips")
    employee = relationship("EmployeeRecord", back_populates="payslips")

    __table_args__ = (
        UniqueConstraint("payroll_run_id", "employee_id", name="uq_payslips_run_employee"),
    )
