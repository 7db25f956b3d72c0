from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from .exceptions import ConfigurationError, InvalidInputError, NegativeNetPayError
from .models import Contributions, PayFrequency, PayrollLineItem, ResidencyStatus
from .money import apply_rate, ensure_amount, format_money, round_minor_units
from .tax_tables import AccountMapping, BracketTable, RateConfig, TaxTableRepository


class PayrollCalculator:
    """Wage income tax and social-security contributions for one rate table.

    The calculator holds no state besides the injected :class:`RateConfig`,
    so one instance can serve any number of concurrent pay runs.
    """

    def __init__(self, config: RateConfig):
        self.config = config

    @classmethod
    def from_repository(cls, tax_table_repo: TaxTableRepository, table_version: str) -> "PayrollCalculator":
        return cls(tax_table_repo.load(table_version))

    def require_accounts(self) -> AccountMapping:
        if self.config.accounts is None:
            raise ConfigurationError(f"Rate table {self.config.version} has no account mapping for payroll postings")
        return self.config.accounts

    @staticmethod
    def _apply_brackets(amount: int, table: BracketTable) -> int:
        # Sum exactly, round once.
        total = sum((Decimal(b.taxable_span(amount)) * b.rate for b in table.brackets), Decimal(0))
        return round_minor_units(total)

    @staticmethod
    def period_divisor(frequency: PayFrequency, periods_in_month: Optional[int] = None) -> Decimal:
        """Pay periods per month used to prorate monthly bracket bounds.

        Weekly and biweekly runs may pass the actual number of pay periods in
        the month (4 or 5 weeks, 2 or 3 fortnights) instead of the average.
        """
        frequency = PayFrequency(frequency)
        if periods_in_month is None or frequency is PayFrequency.MONTHLY:
            return frequency.periods_per_month
        if isinstance(periods_in_month, bool) or not isinstance(periods_in_month, int) or periods_in_month <= 0:
            raise InvalidInputError(f"periods_in_month must be a positive integer, got {periods_in_month!r}")
        return Decimal(periods_in_month)

    def brackets_for(
        self,
        residency: ResidencyStatus,
        frequency: PayFrequency = PayFrequency.MONTHLY,
        periods_in_month: Optional[int] = None,
    ) -> BracketTable:
        table = self.config.brackets_for(residency)
        return table.scaled(self.period_divisor(frequency, periods_in_month))

    def compute_tax(
        self,
        gross_salary: int,
        residency: ResidencyStatus,
        frequency: PayFrequency = PayFrequency.MONTHLY,
        periods_in_month: Optional[int] = None,
    ) -> int:
        ensure_amount(gross_salary, "gross_salary")
        return self._apply_brackets(gross_salary, self.brackets_for(residency, frequency, periods_in_month))

    def compute_contributions(self, gross_salary: int) -> Contributions:
        ensure_amount(gross_salary, "gross_salary")
        rates = self.config.contributions
        basis = gross_salary if rates.ceiling is None else min(gross_salary, rates.ceiling)
        return Contributions(
            employee_share=apply_rate(basis, rates.employee_rate),
            employer_share=apply_rate(basis, rates.employer_rate),
        )

    def build_payroll_line(
        self,
        gross_salary: int,
        residency: ResidencyStatus,
        frequency: PayFrequency = PayFrequency.MONTHLY,
        employee_id: Optional[str] = None,
        periods_in_month: Optional[int] = None,
    ) -> PayrollLineItem:
        tax = self.compute_tax(gross_salary, residency, frequency, periods_in_month)
        contributions = self.compute_contributions(gross_salary)
        net_pay = gross_salary - tax - contributions.employee_share
        if net_pay < 0:
            raise NegativeNetPayError(gross_salary, net_pay, employee_id=employee_id)
        return PayrollLineItem(
            gross_salary=gross_salary,
            tax_withheld=tax,
            employee_contribution=contributions.employee_share,
            employer_contribution=contributions.employer_share,
            net_pay=net_pay,
        )

    def warnings_for(
        self,
        gross_salary: int,
        residency: ResidencyStatus,
        frequency: PayFrequency = PayFrequency.MONTHLY,
        periods_in_month: Optional[int] = None,
    ) -> List[str]:
        """Advisory notes for a payslip; never blocks the calculation."""
        warnings: List[str] = []
        minimum_wage = self.config.minimum_wage
        if (
            minimum_wage is not None
            and PayFrequency(frequency) is PayFrequency.MONTHLY
            and gross_salary < minimum_wage
        ):
            warnings.append(
                f"Salary {format_money(gross_salary)} is below minimum wage {format_money(minimum_wage)}."
            )
        table = self.brackets_for(residency, frequency, periods_in_month)
        if not table.is_flat and gross_salary <= table.boundaries[0] and table.brackets[0].rate == 0:
            warnings.append(
                f"Income below {format_money(table.boundaries[0])} threshold - no income tax applied."
            )
        return warnings
