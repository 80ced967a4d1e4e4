import tempfile
from datetime import date
from pathlib import Path

import streamlit as st

from payroll_ie.core.config import settings
from payroll_ie.core.exceptions import PayrollError
from payroll_ie.core.models import EmployeeSnapshot, PayPeriod
from payroll_ie.core.utils import setup_logging
from payroll_ie.employees.manager import EmployeeManager
from payroll_ie.payroll.engine import PayrollEngine
from payroll_ie.reports.payroll_report import PayrollReport
from payroll_ie.tax.bands import default_band_provider
from payroll_ie.tax.calculator import TaxCalculator
from payroll_ie.tax.config_manager import TaxBandConfigManager

st.set_page_config(page_title="Irish Payroll | PAYE, PRSI & USC", layout="wide", page_icon="🇮🇪")

logger = setup_logging()

def show_calculator():
    st.subheader("Tax Calculator")
    col1, col2 = st.columns(2)
    with col1:
        gross = st.number_input("Gross Pay (EUR)", min_value=0.0, step=100.0, value=0.0)
        frequency = st.selectbox("Pay Frequency", ["monthly", "weekly"])
    with col2:
        credits = st.number_input("Annual Tax Credits (EUR)", min_value=0.0, step=100.0, value=0.0)
        tax_year = int(st.number_input("Tax Year", min_value=2000, max_value=2100,
                                       value=settings.DEFAULT_TAX_YEAR, step=1))

    if st.button("Calculate Deductions"):
        employee = EmployeeSnapshot(employee_id="CALC", gross_salary=gross,
                                    pay_frequency=frequency, tax_credits_annual=credits)
        try:
            breakdown = TaxCalculator(default_band_provider()).calculate(employee, gross, tax_year)
        except PayrollError as e:
            st.error(str(e))
            return

        c1, c2, c3, c4 = st.columns(4)
        c1.metric("PAYE", f"€{breakdown.paye:,.2f}")
        c2.metric("PRSI", f"€{breakdown.prsi:,.2f}")
        c3.metric("USC", f"€{breakdown.usc:,.2f}")
        c4.metric("Net Pay", f"€{breakdown.net_pay:,.2f}")
        st.json(breakdown.to_dict())

def show_roster_preview():
    st.subheader("Payroll Run Preview")
    st.caption("Upload a roster to preview a run against the built-in 2025 bands. Nothing is saved.")

    manager = EmployeeManager()
    st.download_button("Download roster template", manager.get_template().to_csv(index=False),
                       file_name="roster_template.csv", mime="text/csv")

    today = date.today()
    col1, col2, col3 = st.columns(3)
    start = col1.date_input("Period Start", value=today.replace(day=1))
    end = col2.date_input("Period End", value=today)
    payment = col3.date_input("Payment Date", value=today)

    uploaded = st.file_uploader("Roster CSV", type=["csv"])
    if uploaded is None:
        st.info("No roster uploaded yet")
        return

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "roster.csv"
        path.write_bytes(uploaded.getvalue())
        try:
            employees = manager.load_roster(path)
            run = PayrollEngine(default_band_provider()).run_payroll(PayPeriod(start, end, payment), employees)
        except PayrollError as e:
            logger.warning("Roster preview failed: %s", e)
            st.error(str(e))
            return

    report = PayrollReport()
    st.dataframe(report.to_dataframe(run), use_container_width=True)
    st.json(report.totals(run))
    st.download_button("Download Excel", report.to_excel_bytes(run),
                       file_name=f"payroll_{start.isoformat()}_{end.isoformat()}.xlsx",
                       mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")

def show_bands():
    st.subheader("Tax Bands")
    df = TaxBandConfigManager().get_template()
    st.dataframe(df, use_container_width=True)
    st.download_button("Download band template", df.to_csv(index=False),
                       file_name="tax_bands_template.csv", mime="text/csv")

def main():
    st.title("🇮🇪 Irish Payroll")
    tab = st.sidebar.radio("Navigation", ["Tax Calculator", "Payroll Preview", "Tax Bands"])
    if tab == "Tax Calculator":
        show_calculator()
    elif tab == "Payroll Preview":
        show_roster_preview()
    elif tab == "Tax Bands":
        show_bands()

if __name__ == "__main__":
    main()
