from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from payroll_ie.core.config import settings

Base = declarative_base()

def make_engine(db_url: str):
    # Use connect_args for SQLite to allow multithreading in simple dev setups
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    return create_engine(db_url, echo=False, future=True, connect_args=connect_args)

# Default to sqlite file in data/, override via env PAYROLL_IE_DB_URL
DB_URL = settings.DB_URL
engine = make_engine(DB_URL)

def init_db(bind=None):
    # Import models here so they are registered on Base
    import payroll_ie.db.models as _models  # noqa: F401
    bind = bind or engine
    if bind.url.drivername.startswith("sqlite") and bind.url.database not in (None, "", ":memory:"):
        Path(bind.url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=bind)
