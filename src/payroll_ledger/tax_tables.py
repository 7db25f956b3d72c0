from __future__ import annotations

import json
from dataclasses import dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .exceptions import ConfigurationError
from .models import ResidencyStatus
from .money import parse_rate, round_minor_units, to_minor_units

BUNDLED_TABLES_DIR = Path(__file__).resolve().parent / "data" / "tax_tables"


@dataclass(frozen=True)
class TaxBracket:
    lower_bound: int
    upper_bound: Optional[int]
    rate: Decimal

    def taxable_span(self, amount: int) -> int:
        """Portion of ``amount`` falling inside ``[lower_bound, upper_bound)``."""
        if amount <= self.lower_bound:
            return 0
        top = amount if self.upper_bound is None else min(amount, self.upper_bound)
        return top - self.lower_bound


class BracketTable:
    def __init__(self, brackets: List[TaxBracket]):
        self.brackets: Tuple[TaxBracket, ...] = tuple(brackets)
        self._validate()

    def _validate(self) -> None:
        if not self.brackets:
            raise ConfigurationError("Bracket table needs at least one bracket")
        if self.brackets[0].lower_bound != 0:
            raise ConfigurationError("First bracket must start at 0")
        for current, following in zip(self.brackets, self.brackets[1:]):
            if current.upper_bound is None:
                raise ConfigurationError("Only the last bracket may be unbounded")
            if following.lower_bound != current.upper_bound:
                raise ConfigurationError(
                    f"Brackets are not contiguous at {current.upper_bound} / {following.lower_bound}"
                )
            if following.rate < current.rate:
                raise ConfigurationError("Bracket rates must not decrease")
        for bracket in self.brackets:
            if bracket.upper_bound is not None and bracket.upper_bound <= bracket.lower_bound:
                raise ConfigurationError(f"Empty bracket starting at {bracket.lower_bound}")
        if self.brackets[-1].upper_bound is not None:
            raise ConfigurationError("Last bracket must be unbounded")

    @property
    def is_flat(self) -> bool:
        return len(self.brackets) == 1

    @property
    def boundaries(self) -> List[int]:
        return [b.upper_bound for b in self.brackets if b.upper_bound is not None]

    def scaled(self, divisor: Decimal) -> "BracketTable":
        """Bounds divided by ``divisor``, for pay periods shorter than a month."""
        if divisor == 1:
            return self
        return BracketTable(
            [
                TaxBracket(
                    lower_bound=round_minor_units(Decimal(b.lower_bound) / divisor),
                    upper_bound=None if b.upper_bound is None else round_minor_units(Decimal(b.upper_bound) / divisor),
                    rate=b.rate,
                )
                for b in self.brackets
            ]
        )

    @classmethod
    def from_rows(cls, rows: List[Mapping[str, Any]]) -> "BracketTable":
        brackets = []
        for row in rows:
            try:
                upper = row.get("upper_bound")
                brackets.append(
                    TaxBracket(
                        lower_bound=to_minor_units(str(row["lower_bound"])),
                        upper_bound=None if upper is None else to_minor_units(str(upper)),
                        rate=parse_rate(row["rate"]),
                    )
                )
            except KeyError as exc:
                raise ConfigurationError(f"Bracket row missing {exc}") from exc
        return cls(brackets)


@dataclass(frozen=True)
class ContributionRates:
    employee_rate: Decimal
    employer_rate: Decimal
    ceiling: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContributionRates":
        try:
            ceiling = data.get("ceiling")
            return cls(
                employee_rate=parse_rate(data["employee_rate"], "employee_rate"),
                employer_rate=parse_rate(data["employer_rate"], "employer_rate"),
                ceiling=None if ceiling is None else to_minor_units(str(ceiling)),
            )
        except KeyError as exc:
            raise ConfigurationError(f"Contribution rates missing {exc}") from exc


@dataclass(frozen=True)
class AccountMapping:
    salary_expense_account: str
    employer_contribution_expense_account: str
    cash_account: str
    tax_payable_account: str
    contribution_payable_account: str

    def __post_init__(self) -> None:
        missing = [f.name for f in fields(self) if not getattr(self, f.name)]
        if missing:
            raise ConfigurationError(f"Account mapping incomplete: {', '.join(missing)}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccountMapping":
        names = [f.name for f in fields(cls)]
        missing = [name for name in names if not data.get(name)]
        if missing:
            raise ConfigurationError(f"Account mapping incomplete: {', '.join(missing)}")
        return cls(**{name: str(data[name]) for name in names})


class RateConfig:
    def __init__(
        self,
        version: str,
        income_tax: Dict[ResidencyStatus, BracketTable],
        contributions: ContributionRates,
        accounts: Optional[AccountMapping] = None,
        jurisdiction: str = "",
        currency: str = "USD",
        minimum_wage: Optional[int] = None,
    ):
        missing = [status.value for status in ResidencyStatus if status not in income_tax]
        if missing:
            raise ConfigurationError(f"Rate table {version} has no brackets for {', '.join(missing)}")
        self.version = version
        self.income_tax = income_tax
        self.contributions = contributions
        self.accounts = accounts
        self.jurisdiction = jurisdiction
        self.currency = currency
        self.minimum_wage = minimum_wage

    def brackets_for(self, residency: ResidencyStatus) -> BracketTable:
        return self.income_tax[ResidencyStatus(residency)]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RateConfig":
        try:
            version = data["version"]
            tax_rows = data["income_tax"]
            income_tax = {status: BracketTable.from_rows(tax_rows[status.value]) for status in ResidencyStatus}
            contributions = ContributionRates.from_dict(data["contributions"])
        except KeyError as exc:
            raise ConfigurationError(f"Rate table missing {exc}") from exc
        accounts = data.get("accounts")
        minimum_wage = data.get("minimum_wage")
        return cls(
            version=version,
            income_tax=income_tax,
            contributions=contributions,
            accounts=AccountMapping.from_dict(accounts) if accounts else None,
            jurisdiction=data.get("jurisdiction", ""),
            currency=data.get("currency", "USD"),
            minimum_wage=None if minimum_wage is None else to_minor_units(str(minimum_wage)),
        )


class TaxTableRepository:
    def __init__(self, base_path: Path = BUNDLED_TABLES_DIR):
        self.base_path = Path(base_path)

    def available_versions(self) -> List[str]:
        return sorted([p.stem for p in self.base_path.glob("*.json")])

    def load(self, version: str) -> RateConfig:
        file_path = self.base_path / f"{version}.json"
        if not file_path.exists():
            raise ConfigurationError(f"Tax table version {version} not found at {file_path}")
        with file_path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Tax table {file_path} is not valid JSON: {exc}") from exc
        return RateConfig.from_dict(data)
