"""
Employee roster management: bulk upload of the payroll roster and a quick
payroll preview over the uploaded employees.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from payroll_ie.core.models import EmployeeSnapshot
from payroll_ie.core.upload_manager import ColumnMapping, UploadManager
from payroll_ie.core.utils import ZERO, to_decimal

logger = logging.getLogger(__name__)

class EmployeeManager:
    """Loads rosters from files and hands them to the employee store."""

    def __init__(self, repository=None):
        self.repository = repository
        self.upload_manager = UploadManager('employees')

    def get_template(self) -> pd.DataFrame:
        """Get employee upload template."""
        return self.upload_manager.generate_template()

    def load_roster(self, file_path: Union[str, Path],
                    column_mappings: Optional[List[Dict[str, str]]] = None) -> List[EmployeeSnapshot]:
        """
        Load active employees from CSV/Excel/JSON.

        Rows with is_active set to false are skipped. Any invalid row rejects
        the whole file.
        """
        mappings = [
            ColumnMapping(source_column=m['source'], target_field=m['target'], transform=m.get('transform'))
            for m in (column_mappings or [])
        ]

        def transform_employee_data(df: pd.DataFrame) -> pd.DataFrame:
            for col, fn in (('employee_id', str.upper), ('full_name', str), ('pay_frequency', str.lower)):
                if col in df.columns:
                    df[col] = df[col].map(lambda v, fn=fn: v if pd.isna(v) else fn(str(v).strip()))
            return df

        df = self.upload_manager.load_validated(file_path, mappings, transform_employee_data)

        employees = []
        for record in df.to_dict(orient='records'):
            active = record.get('is_active', True)
            if isinstance(active, str):
                active = active.strip().lower() in ('true', '1', 'yes', 'y')
            if not pd.isna(active) and not active:
                continue
            credits = record.get('tax_credits_annual')
            name = record.get('full_name')
            employees.append(EmployeeSnapshot(
                employee_id=record['employee_id'],
                full_name=None if pd.isna(name) else name,
                gross_salary=to_decimal(record['gross_salary'], 'gross_salary'),
                pay_frequency=record['pay_frequency'],
                tax_credits_annual=ZERO if credits is None or pd.isna(credits) else to_decimal(credits, 'tax_credits_annual'),
            ))

        logger.info("Loaded %d active employees from %s", len(employees), Path(file_path).name)
        return employees

    def bulk_upload(self, file_path: Union[str, Path],
                    column_mappings: Optional[List[Dict[str, str]]] = None) -> Dict[str, Any]:
        """Load a roster file and upsert it into the employee store."""
        if self.repository is None:
            raise RuntimeError("EmployeeManager needs a repository for bulk_upload")
        employees = self.load_roster(file_path, column_mappings)
        result = self.repository.bulk_upsert(employees)
        return {'success': True, 'employee_stats': result, 'total_loaded': len(employees)}

