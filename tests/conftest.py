from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from payroll_ie.core.models import EmployeeSnapshot, PayPeriod
from payroll_ie.db.session import init_db

@pytest.fixture
def db_session():
    engine = create_engine("sqlite://", future=True, poolclass=StaticPool,
                           connect_args={"check_same_thread": False})
    init_db(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()
    engine.dispose()

@pytest.fixture
def january():
    return PayPeriod(date(2025, 1, 1), date(2025, 1, 31), date(2025, 1, 31))

@pytest.fixture
def february():
    return PayPeriod(date(2025, 2, 1), date(2025, 2, 28), date(2025, 2, 28))

@pytest.fixture
def roster():
    return [
        EmployeeSnapshot("EMP001", Decimal("3000"), "monthly", Decimal("3300"), "Aoife Byrne"),
        EmployeeSnapshot("EMP002", Decimal("1000"), "monthly", Decimal("0"), "Cian Walsh"),
        EmployeeSnapshot("EMP003", Decimal("500"), "weekly", Decimal("0"), "Niamh Kelly"),
    ]
