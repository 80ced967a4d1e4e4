import logging
import logging.handlers
from decimal import Decimal

import pytest

from payroll_ie.core.exceptions import InvalidInput
from payroll_ie.core.utils import round_money, setup_logging, to_decimal

def test_setup_logging_idempotent(tmp_path):
    logger1 = setup_logging("tmptest", log_dir=str(tmp_path))
    handlers_before = len(logger1.handlers)
    logger2 = setup_logging("tmptest", log_dir=str(tmp_path))
    assert handlers_before == len(logger2.handlers)
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger2.handlers)
    assert (tmp_path / "tmptest.log").exists()

def test_round_money_half_up():
    assert round_money(Decimal("0.005")) == Decimal("0.01")
    assert round_money(Decimal("2.675")) == Decimal("2.68")
    assert round_money(Decimal("14.084")) == Decimal("14.08")

def test_to_decimal():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(" 352 ") == Decimal("352")
    for bad in (None, True, "abc", float("nan")):
        with pytest.raises(InvalidInput):
            to_decimal(bad)
