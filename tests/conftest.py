from __future__ import annotations

import pytest

from payroll_ledger.calculator import PayrollCalculator
from payroll_ledger.tax_tables import RateConfig, TaxTableRepository

ACCOUNTS = {
    "salary_expense_account": "Salaries and Wages",
    "employer_contribution_expense_account": "Employer Contribution Expense",
    "cash_account": "Cash",
    "tax_payable_account": "Tax Payable",
    "contribution_payable_account": "Contribution Payable",
}


def _make_config(resident=None, non_resident=None, employee_rate="0.04", employer_rate="0.06", ceiling=None, **extra):
    data = {
        "version": "test_v1",
        "income_tax": {
            "resident": resident
            or [
                {"lower_bound": "0", "upper_bound": "500.00", "rate": "0"},
                {"lower_bound": "500.00", "upper_bound": None, "rate": "0.10"},
            ],
            "non_resident": non_resident or [{"lower_bound": "0", "upper_bound": None, "rate": "0.10"}],
        },
        "contributions": {"employee_rate": employee_rate, "employer_rate": employer_rate, "ceiling": ceiling},
        "accounts": ACCOUNTS,
    }
    data.update(extra)
    return RateConfig.from_dict(data)


@pytest.fixture
def calculator() -> PayrollCalculator:
    return PayrollCalculator.from_repository(TaxTableRepository(), "tl_2024_v1")


@pytest.fixture
def make_config():
    return _make_config


@pytest.fixture
def accounts() -> dict:
    return dict(ACCOUNTS)
