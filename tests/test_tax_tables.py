import json
from decimal import Decimal

import pytest

from payroll_ledger.exceptions import ConfigurationError
from payroll_ledger.models import ResidencyStatus
from payroll_ledger.tax_tables import AccountMapping, BracketTable, TaxBracket, TaxTableRepository


def test_available_versions_lists_bundled_table():
    repo = TaxTableRepository()

    versions = repo.available_versions()

    assert "tl_2024_v1" in versions
    assert versions == sorted(versions)


def test_bundled_table_contents():
    config = TaxTableRepository().load("tl_2024_v1")

    resident = config.brackets_for(ResidencyStatus.RESIDENT)
    non_resident = config.brackets_for("non_resident")

    assert resident.boundaries == [50000]
    assert resident.brackets[1].rate == Decimal("0.10")
    assert non_resident.is_flat
    assert config.contributions.employee_rate == Decimal("0.04")
    assert config.contributions.employer_rate == Decimal("0.06")
    assert config.contributions.ceiling is None
    assert config.minimum_wage == 11500
    assert config.accounts.cash_account == "2210 Salaries Payable"


def test_load_missing_table_version_raises(tmp_path):
    repo = TaxTableRepository(tmp_path)

    with pytest.raises(ConfigurationError):
        repo.load("missing")


def test_load_malformed_json_raises(tmp_path):
    (tmp_path / "broken.json").write_text("{not json")

    with pytest.raises(ConfigurationError):
        TaxTableRepository(tmp_path).load("broken")


def test_load_table_without_non_resident_brackets_raises(tmp_path):
    table = {
        "version": "partial",
        "income_tax": {"resident": [{"lower_bound": "0", "upper_bound": None, "rate": "0.1"}]},
        "contributions": {"employee_rate": "0.04", "employer_rate": "0.06"},
    }
    (tmp_path / "partial.json").write_text(json.dumps(table))

    with pytest.raises(ConfigurationError):
        TaxTableRepository(tmp_path).load("partial")


@pytest.mark.parametrize(
    "brackets",
    [
        [],
        [TaxBracket(100, None, Decimal("0.1"))],
        [TaxBracket(0, 500, Decimal("0")), TaxBracket(600, None, Decimal("0.1"))],
        [TaxBracket(0, 500, Decimal("0.2")), TaxBracket(500, None, Decimal("0.1"))],
        [TaxBracket(0, None, Decimal("0")), TaxBracket(500, None, Decimal("0.1"))],
        [TaxBracket(0, 500, Decimal("0"))],
    ],
)
def test_invalid_bracket_tables_are_rejected(brackets):
    with pytest.raises(ConfigurationError):
        BracketTable(brackets)


def test_rate_outside_unit_interval_is_rejected(make_config):
    with pytest.raises(ConfigurationError):
        make_config(employee_rate="1.5")
    with pytest.raises(ConfigurationError):
        make_config(non_resident=[{"lower_bound": "0", "upper_bound": None, "rate": "-0.1"}])


def test_account_mapping_requires_all_accounts(accounts):
    accounts["tax_payable_account"] = ""

    with pytest.raises(ConfigurationError) as excinfo:
        AccountMapping.from_dict(accounts)

    assert "tax_payable_account" in str(excinfo.value)


def test_taxable_span_clips_to_bracket():
    bracket = TaxBracket(lower_bound=500, upper_bound=1500, rate=Decimal("0.1"))

    assert bracket.taxable_span(500) == 0
    assert bracket.taxable_span(501) == 1
    assert bracket.taxable_span(5000) == 1000
