from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .exceptions import InvalidInputError
from .money import ensure_amount


class ResidencyStatus(str, Enum):
    RESIDENT = "resident"
    NON_RESIDENT = "non_resident"


class PayFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def periods_per_month(self) -> Decimal:
        return _PERIODS_PER_MONTH[self]


_PERIODS_PER_MONTH = {
    PayFrequency.WEEKLY: Decimal("4.33"),
    PayFrequency.BIWEEKLY: Decimal("2.17"),
    PayFrequency.MONTHLY: Decimal("1"),
}


@dataclass(frozen=True)
class Contributions:
    employee_share: int
    employer_share: int

    @property
    def total(self) -> int:
        return self.employee_share + self.employer_share


@dataclass(frozen=True)
class PayrollLineItem:
    gross_salary: int
    tax_withheld: int
    employee_contribution: int
    employer_contribution: int
    net_pay: int

    def __post_init__(self) -> None:
        for name in ("gross_salary", "tax_withheld", "employee_contribution", "employer_contribution", "net_pay"):
            ensure_amount(getattr(self, name), name)

    @property
    def total_contribution(self) -> int:
        return self.employee_contribution + self.employer_contribution

    def as_dict(self) -> Dict[str, int]:
        return {
            "gross_salary": self.gross_salary,
            "tax_withheld": self.tax_withheld,
            "employee_contribution": self.employee_contribution,
            "employer_contribution": self.employer_contribution,
            "net_pay": self.net_pay,
        }


@dataclass
class EmployeePayRequest:
    employee_id: str
    gross_salary: int
    residency: ResidencyStatus = ResidencyStatus.RESIDENT
    frequency: PayFrequency = PayFrequency.MONTHLY
    periods_in_month: Optional[int] = None


@dataclass(frozen=True)
class JournalLine:
    account_name: str
    debit_amount: int = 0
    credit_amount: int = 0
    description: str = ""

    def __post_init__(self) -> None:
        if not self.account_name:
            raise InvalidInputError("Journal line needs an account name")
        ensure_amount(self.debit_amount, "debit_amount")
        ensure_amount(self.credit_amount, "credit_amount")
        if (self.debit_amount == 0) == (self.credit_amount == 0):
            raise InvalidInputError(
                f"Journal line for {self.account_name} must carry exactly one of debit or credit"
            )


@dataclass(frozen=True)
class JournalEntry:
    lines: Tuple[JournalLine, ...]
    entry_date: Optional[date] = None
    description: str = ""
    source: str = "payroll"
    entry_number: Optional[str] = None

    @property
    def total_debits(self) -> int:
        return sum(line.debit_amount for line in self.lines)

    @property
    def total_credits(self) -> int:
        return sum(line.credit_amount for line in self.lines)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    def amount_for(self, account_name: str) -> Tuple[int, int]:
        """Return ``(debit, credit)`` posted to ``account_name`` by this entry."""
        debit = sum(line.debit_amount for line in self.lines if line.account_name == account_name)
        credit = sum(line.credit_amount for line in self.lines if line.account_name == account_name)
        return debit, credit


@dataclass(frozen=True)
class TrialBalanceRow:
    account_name: str
    debit_balance: int
    credit_balance: int


@dataclass(frozen=True)
class TrialBalance:
    total_debits: int
    total_credits: int
    rows: Tuple[TrialBalanceRow, ...] = field(default_factory=tuple)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    @property
    def difference(self) -> int:
        return self.total_debits - self.total_credits


@dataclass
class RunFailure:
    employee_id: str
    code: str
    message: str


@dataclass
class EmployeeResult:
    employee_id: str
    line: PayrollLineItem
    residency: ResidencyStatus
    warnings: List[str] = field(default_factory=list)
