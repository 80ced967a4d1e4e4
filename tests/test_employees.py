from decimal import Decimal

import pandas as pd
import pytest

from payroll_ie.core.exceptions import InvalidInput
from payroll_ie.core.models import PayFrequency
from payroll_ie.db.repositories import EmployeeRepository
from payroll_ie.employees.manager import EmployeeManager

def _roster_csv(tmp_path, rows):
    path = tmp_path / "roster.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path

def test_template_columns():
    df = EmployeeManager().get_template()
    assert list(df.columns) == ["employee_id", "full_name", "gross_salary", "pay_frequency",
                                "tax_credits_annual", "is_active"]
    assert df.iloc[0]["pay_frequency"] == "monthly"

def test_load_roster_normalises_and_skips_inactive(tmp_path):
    path = _roster_csv(tmp_path, [
        {"employee_id": " emp001", "full_name": "Aoife Byrne", "gross_salary": 3000, "pay_frequency": "Monthly",
         "tax_credits_annual": 3300, "is_active": True},
        {"employee_id": "EMP002", "full_name": "Cian Walsh", "gross_salary": 500.5, "pay_frequency": "weekly",
         "tax_credits_annual": None, "is_active": True},
        {"employee_id": "EMP003", "full_name": "Gone", "gross_salary": 100, "pay_frequency": "weekly",
         "tax_credits_annual": 0, "is_active": False},
    ])
    employees = EmployeeManager().load_roster(path)
    assert [e.employee_id for e in employees] == ["EMP001", "EMP002"]
    assert employees[0].pay_frequency == PayFrequency.MONTHLY
    assert employees[0].tax_credits_annual == Decimal("3300")
    assert employees[1].gross_salary == Decimal("500.5")
    assert employees[1].tax_credits_annual == Decimal("0")

def test_invalid_roster_rows(tmp_path):
    path = _roster_csv(tmp_path, [
        {"employee_id": "EMP001", "gross_salary": -10, "pay_frequency": "monthly"},
        {"employee_id": "EMP002", "gross_salary": 1000, "pay_frequency": "fortnightly"},
        {"employee_id": None, "gross_salary": 1000, "pay_frequency": "weekly"},
    ])
    with pytest.raises(InvalidInput) as exc:
        EmployeeManager().load_roster(path)
    message = str(exc.value)
    assert "row 1: gross_salary: below minimum 0" in message
    assert "row 2: pay_frequency" in message
    assert "row 3: Missing required field: employee_id" in message

def test_bulk_upload_into_store(tmp_path, db_session):
    path = _roster_csv(tmp_path, [
        {"employee_id": "EMP010", "full_name": "Sean Murphy", "gross_salary": 4200, "pay_frequency": "monthly"},
    ])
    repo = EmployeeRepository(db_session)
    result = EmployeeManager(repo).bulk_upload(path)
    assert result["employee_stats"] == {"created": 1, "updated": 0}
    assert repo.get_active_employees()[0].full_name == "Sean Murphy"

def test_bulk_upload_requires_repository(tmp_path):
    path = _roster_csv(tmp_path, [{"employee_id": "E1", "gross_salary": 1, "pay_frequency": "weekly"}])
    with pytest.raises(RuntimeError):
        EmployeeManager().bulk_upload(path)

def test_ids_and_amounts_are_read_as_text(tmp_path):
    path = tmp_path / "roster.csv"
    path.write_text(
        "employee_id,full_name,gross_salary,pay_frequency,tax_credits_annual\n"
        "00123,Orla Doyle,2500.10,monthly,3300.00\n"
    )
    employees = EmployeeManager().load_roster(path)
    assert employees[0].employee_id == "00123"
    assert employees[0].gross_salary == Decimal("2500.10")
    assert str(employees[0].gross_salary) == "2500.10"

def test_json_roster_keeps_decimal_amounts(tmp_path):
    path = tmp_path / "roster.json"
    path.write_text('[{"employee_id": "007", "gross_salary": 1000.10, "pay_frequency": "weekly"}]')
    employees = EmployeeManager().load_roster(path)
    assert employees[0].employee_id == "007"
    assert str(employees[0].gross_salary) == "1000.10"
