import io
from pathlib import Path
from typing import Dict, Union

import pandas as pd

from payroll_ie.core.models import PayrollRun

PAYSLIP_COLUMNS = [
    "Employee ID", "Employee Name", "Gross Pay", "PAYE", "PRSI", "USC", "Net Pay",
    "YTD Gross", "YTD PAYE", "YTD PRSI", "YTD USC", "YTD Net",
]

class PayrollReport:
    """Spreadsheet views of a processed payroll run."""

    def to_dataframe(self, run: PayrollRun) -> pd.DataFrame:
        rows = [
            {
                "Employee ID": p.employee_id,
                "Employee Name": p.employee_name or "",
                "Gross Pay": float(p.gross_pay),
                "PAYE": float(p.paye),
                "PRSI": float(p.prsi),
                "USC": float(p.usc),
                "Net Pay": float(p.net_pay),
                "YTD Gross": float(p.ytd_gross),
                "YTD PAYE": float(p.ytd_paye),
                "YTD PRSI": float(p.ytd_prsi),
                "YTD USC": float(p.ytd_usc),
                "YTD Net": float(p.ytd_net),
            }
            for p in run.payslips
        ]
        return pd.DataFrame(rows, columns=PAYSLIP_COLUMNS)

    def totals(self, run: PayrollRun) -> Dict[str, float]:
        t = run.totals
        return {
            "Total Gross": float(t.gross),
            "Total PAYE": float(t.paye),
            "Total PRSI": float(t.prsi),
            "Total USC": float(t.usc),
            "Total Net": float(t.net),
        }

    def totals_dataframe(self, run: PayrollRun) -> pd.DataFrame:
        rows = [
            {"Item": "Run ID", "Value": run.run_id},
            {"Item": "Period", "Value": str(run.period)},
            {"Item": "Payment Date", "Value": run.period.payment_date.isoformat()},
            {"Item": "Status", "Value": run.status.value},
            {"Item": "Employees", "Value": len(run.payslips)},
        ]
        rows += [{"Item": k, "Value": v} for k, v in self.totals(run).items()]
        return pd.DataFrame(rows, columns=["Item", "Value"])

    def _write(self, run: PayrollRun, target):
        with pd.ExcelWriter(target, engine="openpyxl") as writer:
            self.to_dataframe(run).to_excel(writer, sheet_name="Payslips", index=False)
            self.totals_dataframe(run).to_excel(writer, sheet_name="Totals", index=False)

    def export_excel(self, run: PayrollRun, file_path: Union[str, Path]) -> Path:
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        self._write(run, file_path)
        return file_path

    def to_excel_bytes(self, run: PayrollRun) -> bytes:
        buffer = io.BytesIO()
        self._write(run, buffer)
        return buffer.getvalue()
