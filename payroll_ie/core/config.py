from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PAYROLL_IE_")

    APP_NAME: str = Field("payroll_ie", description="Logger namespace and report title")
    DB_URL: str = Field("sqlite:///./data/payroll.db", description="Database URL")
    LOG_LEVEL: str = "INFO"
    AUDIT_LOG_PATH: str = Field("./data/logs", description="Directory for rotating logs and run audit trail")

    DEFAULT_TAX_YEAR: int = 2025
    PAYROLL_MAX_WORKERS: int = Field(4, ge=1, description="Worker pool size for per-employee tax computation")
    BAND_STORE_TIMEOUT: float = 10.0

    # PRSI Class A employee contribution (2025)
    PRSI_EMPLOYEE_RATE: Decimal = Decimal("0.04")
    PRSI_WEEKLY_THRESHOLD: Decimal = Decimal("352")
    PRSI_MONTHLY_THRESHOLD: Decimal = Decimal("1526")

settings = Settings()
