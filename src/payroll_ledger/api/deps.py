from functools import lru_cache
from pathlib import Path

from fastapi import HTTPException

from payroll_ledger.calculator import PayrollCalculator
from payroll_ledger.core.config import get_settings
from payroll_ledger.exceptions import ConfigurationError
from payroll_ledger.storage import LedgerStore
from payroll_ledger.tax_tables import TaxTableRepository


@lru_cache
def get_calculator() -> PayrollCalculator:
    settings = get_settings()
    return PayrollCalculator.from_repository(TaxTableRepository(settings.tax_table_dir), settings.tax_table_version)


def open_store(path: Path) -> LedgerStore:
    try:
        return LedgerStore(path)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail={"code": exc.code, "message": exc.message})


def get_store() -> LedgerStore:
    return open_store(get_settings().ledger_path)
