from decimal import Decimal

import pytest

from payroll_ledger.calculator import PayrollCalculator
from payroll_ledger.exceptions import ConfigurationError, InvalidInputError, NegativeNetPayError
from payroll_ledger.models import Contributions, PayFrequency, ResidencyStatus

RESIDENT = ResidencyStatus.RESIDENT
NON_RESIDENT = ResidencyStatus.NON_RESIDENT

THREE_BRACKETS = [
    {"lower_bound": "0", "upper_bound": "500.00", "rate": "0"},
    {"lower_bound": "500.00", "upper_bound": "1500.00", "rate": "0.10"},
    {"lower_bound": "1500.00", "upper_bound": None, "rate": "0.20"},
]


def test_resident_round_trip_scenario(calculator):
    line = calculator.build_payroll_line(100000, RESIDENT)

    assert line.gross_salary == 100000
    assert line.tax_withheld == 5000
    assert line.employee_contribution == 4000
    assert line.employer_contribution == 6000
    assert line.net_pay == 91000


def test_income_at_threshold_stays_in_lower_bracket(calculator):
    assert calculator.compute_tax(50000, RESIDENT) == 0
    assert calculator.compute_tax(50004, RESIDENT) == 0
    # 0.5 cent rounds half-up
    assert calculator.compute_tax(50005, RESIDENT) == 1
    assert calculator.compute_tax(50010, RESIDENT) == 1


def test_every_boundary_uses_lower_bracket_rate(make_config):
    calc = PayrollCalculator(make_config(resident=THREE_BRACKETS))

    assert calc.compute_tax(50000, RESIDENT) == 0
    assert calc.compute_tax(50100, RESIDENT) == 10
    assert calc.compute_tax(150000, RESIDENT) == 10000
    assert calc.compute_tax(150100, RESIDENT) == 10020


def test_tax_is_monotonic_in_gross(calculator, make_config):
    progressive = PayrollCalculator(make_config(resident=THREE_BRACKETS))

    for calc, residency in [(calculator, RESIDENT), (calculator, NON_RESIDENT), (progressive, RESIDENT)]:
        previous = 0
        for gross in range(0, 300000, 137):
            tax = calc.compute_tax(gross, residency)
            assert tax >= previous
            previous = tax


def test_non_resident_flat_rate_has_no_threshold(calculator):
    assert calculator.compute_tax(100, NON_RESIDENT) == 10
    assert calculator.compute_tax(100000, NON_RESIDENT) == 10000


def test_negative_gross_is_rejected(calculator):
    with pytest.raises(InvalidInputError):
        calculator.compute_tax(-1, RESIDENT)
    with pytest.raises(InvalidInputError):
        calculator.compute_contributions(-1)
    with pytest.raises(InvalidInputError):
        calculator.build_payroll_line(-1, RESIDENT)


def test_float_gross_is_rejected(calculator):
    with pytest.raises(InvalidInputError):
        calculator.compute_tax(1000.0, RESIDENT)


def test_contribution_shares_are_rounded_independently(calculator):
    assert calculator.compute_contributions(100000) == Contributions(employee_share=4000, employer_share=6000)
    assert calculator.compute_contributions(13) == Contributions(employee_share=1, employer_share=1)


def test_contribution_ceiling_caps_the_basis(make_config):
    calc = PayrollCalculator(make_config(ceiling="800.00"))

    shares = calc.compute_contributions(100000)

    assert shares.employee_share == 3200
    assert shares.employer_share == 4800
    assert shares.total == 8000


def test_employer_share_does_not_reduce_net_pay(make_config):
    calc = PayrollCalculator(make_config(employer_rate="0.50"))

    line = calc.build_payroll_line(100000, RESIDENT)

    assert line.employer_contribution == 50000
    assert line.net_pay == 100000 - 5000 - 4000


def test_negative_net_pay_is_not_clamped(make_config):
    calc = PayrollCalculator(make_config(resident=[{"lower_bound": "0", "upper_bound": None, "rate": "0.97"}]))

    with pytest.raises(NegativeNetPayError) as excinfo:
        calc.build_payroll_line(100000, RESIDENT, employee_id="emp-7")

    assert excinfo.value.net_pay == -1000
    assert excinfo.value.employee_id == "emp-7"
    assert excinfo.value.code == "NEGATIVE_NET_PAY"


def test_weekly_threshold_is_prorated(calculator):
    table = calculator.brackets_for(RESIDENT, PayFrequency.WEEKLY)

    assert table.boundaries == [11547]
    assert calculator.compute_tax(21547, RESIDENT, PayFrequency.WEEKLY) == 1000
    assert PayFrequency.BIWEEKLY.periods_per_month == Decimal("2.17")


def test_actual_periods_in_month_override_average(calculator):
    five_weeks = calculator.brackets_for(RESIDENT, PayFrequency.WEEKLY, periods_in_month=5)
    three_fortnights = calculator.brackets_for(RESIDENT, PayFrequency.BIWEEKLY, periods_in_month=3)

    assert five_weeks.boundaries == [10000]
    assert three_fortnights.boundaries == [16667]
    assert calculator.compute_tax(20000, RESIDENT, PayFrequency.WEEKLY, periods_in_month=5) == 1000
    assert calculator.build_payroll_line(20000, RESIDENT, PayFrequency.WEEKLY, periods_in_month=4).tax_withheld == 750


def test_periods_in_month_is_ignored_for_monthly_runs(calculator):
    assert calculator.brackets_for(RESIDENT, PayFrequency.MONTHLY, periods_in_month=5).boundaries == [50000]


@pytest.mark.parametrize("periods", [0, -4, 4.5, True])
def test_invalid_periods_in_month_is_rejected(calculator, periods):
    with pytest.raises(InvalidInputError):
        calculator.compute_tax(20000, RESIDENT, PayFrequency.WEEKLY, periods_in_month=periods)


def test_require_accounts(calculator, make_config):
    assert calculator.require_accounts() is calculator.config.accounts
    with pytest.raises(ConfigurationError):
        PayrollCalculator(make_config(accounts=None)).require_accounts()


def test_warnings_for_low_income(calculator):
    warnings = calculator.warnings_for(10000, RESIDENT)

    assert any("minimum wage" in w for w in warnings)
    assert any("no income tax applied" in w for w in warnings)
    assert calculator.warnings_for(100000, RESIDENT) == []
    assert calculator.warnings_for(20000, NON_RESIDENT) == []
