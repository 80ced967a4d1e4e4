import logging
import os
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from payroll_ie.core.config import settings
from payroll_ie.core.exceptions import InvalidInput

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

def mkdir_safe(path: str):
    Path(path).mkdir(parents=True, exist_ok=True)

def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Convert user/config input to Decimal without passing through binary floats."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field}: expected a number, got {value!r}")
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidInput(f"{field}: expected a number, got {value!r}") from None
    if result.is_nan():
        raise InvalidInput(f"{field}: expected a number, got {value!r}")
    return result

def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)

def setup_logging(component: str = None, *, log_level: str = None, log_dir: str = None):
    logger_name = f"{settings.APP_NAME}.{component}" if component else settings.APP_NAME
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger
    level = log_level or settings.LOG_LEVEL
    logger.setLevel(getattr(logging, level.upper()))
    audit_dir = log_dir or settings.AUDIT_LOG_PATH
    mkdir_safe(audit_dir)
    logfile = Path(audit_dir) / f"{component or 'payroll'}.log"
    handler = RotatingFileHandler(str(logfile), maxBytes=10_000_000, backupCount=5)
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    if os.getenv("DEV", "").lower() in ("1", "true", "yes"):
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)
    logger.propagate = False
    return logger
