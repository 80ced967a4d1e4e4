import pandas as pd

from payroll_ie.payroll.engine import PayrollEngine
from payroll_ie.reports.payroll_report import PAYSLIP_COLUMNS, PayrollReport
from payroll_ie.tax.bands import default_band_provider

def test_dataframe_columns_and_rows(january, roster):
    run = PayrollEngine(default_band_provider()).run_payroll(january, roster)
    df = PayrollReport().to_dataframe(run)
    assert list(df.columns) == PAYSLIP_COLUMNS
    assert list(df["Employee ID"]) == ["EMP001", "EMP002", "EMP003"]
    assert df.loc[0, "Employee Name"] == "Aoife Byrne"
    assert df["Net Pay"].sum() == 4037.5

def test_export_excel_totals_sheet(tmp_path, january, roster):
    run = PayrollEngine(default_band_provider()).run_payroll(january, roster)
    path = PayrollReport().export_excel(run, tmp_path / "reports" / "jan.xlsx")

    payslips = pd.read_excel(path, sheet_name="Payslips")
    assert len(payslips) == 3
    totals = pd.read_excel(path, sheet_name="Totals").set_index("Item")["Value"]
    assert float(totals["Total Gross"]) == float(run.totals.gross)
    assert float(totals["Total Net"]) == float(run.totals.net)
    assert float(totals["Total PRSI"]) == float(run.totals.prsi)
    assert totals["Status"] == "processed"

def test_excel_bytes(january, roster):
    run = PayrollEngine(default_band_provider()).run_payroll(january, roster)
    data = PayrollReport().to_excel_bytes(run)
    assert data[:2] == b"PK"
