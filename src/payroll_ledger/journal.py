"""Double-entry postings for pay runs and the trial-balance check over them.

A pay run becomes one journal entry:

    Dr  salary expense                    total gross
    Dr  employer contribution expense     total employer share
        Cr  cash / salaries payable       total net pay
        Cr  tax payable                   total tax withheld
        Cr  contribution payable          total employee + employer share

Line items are integer cents and ``net = gross - tax - employee share`` holds
per line, so the entry balances without correction. Line items rebuilt from
stored runs may carry a cent of drift each; that residual is absorbed by the
cash account. Anything larger than one cent per line item is rejected.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .core.logging import get_logger
from .exceptions import ConfigurationError, InvalidInputError, UnbalancedEntryError
from .models import JournalEntry, JournalLine, PayrollLineItem, TrialBalance, TrialBalanceRow
from .tax_tables import AccountMapping

logger = get_logger(__name__)

AccountMappingLike = Union[AccountMapping, Mapping[str, Any], None]


def resolve_account_mapping(account_mapping: AccountMappingLike) -> AccountMapping:
    if isinstance(account_mapping, AccountMapping):
        return account_mapping
    if account_mapping is None:
        raise ConfigurationError("No account mapping configured for payroll postings")
    return AccountMapping.from_dict(account_mapping)


def build_payroll_journal_entry(
    lines: Sequence[PayrollLineItem],
    account_mapping: AccountMappingLike,
    entry_date: Optional[date] = None,
    description: str = "",
    source: str = "payroll",
) -> JournalEntry:
    accounts = resolve_account_mapping(account_mapping)
    items = list(lines)
    if not items:
        raise InvalidInputError("A payroll journal entry needs at least one line item")
    for item in items:
        if not isinstance(item, PayrollLineItem):
            raise InvalidInputError(f"Expected PayrollLineItem, got {type(item).__name__}")

    total_gross = sum(item.gross_salary for item in items)
    total_employer = sum(item.employer_contribution for item in items)
    total_net = sum(item.net_pay for item in items)
    total_tax = sum(item.tax_withheld for item in items)
    total_contribution = sum(item.total_contribution for item in items)

    debits = total_gross + total_employer
    credits = total_net + total_tax + total_contribution
    residual = debits - credits
    if residual:
        if abs(residual) > len(items) or total_net + residual < 0:
            raise UnbalancedEntryError(
                debits,
                credits,
                f"Payroll entry is off by {residual} cents across {len(items)} line items; "
                "line items are inconsistent",
            )
        logger.warning(
            "journal_rounding_corrected",
            account=accounts.cash_account,
            residual=residual,
            line_items=len(items),
        )
        total_net += residual

    candidates = [
        (accounts.salary_expense_account, total_gross, 0, "Gross salaries"),
        (accounts.employer_contribution_expense_account, total_employer, 0, "Employer social-security contribution"),
        (accounts.cash_account, 0, total_net, "Net salaries payable"),
        (accounts.tax_payable_account, 0, total_tax, "Wage income tax withheld"),
        (accounts.contribution_payable_account, 0, total_contribution, "Social-security contributions payable"),
    ]
    journal_lines = tuple(
        JournalLine(account_name=name, debit_amount=debit, credit_amount=credit, description=text)
        for name, debit, credit, text in candidates
        if debit or credit
    )
    entry = JournalEntry(
        lines=journal_lines,
        entry_date=entry_date,
        description=description,
        source=source,
    )
    if not entry.is_balanced:
        raise UnbalancedEntryError(entry.total_debits, entry.total_credits)
    return entry


def compute_trial_balance(entries: Iterable[JournalEntry]) -> TrialBalance:
    total_debits = 0
    total_credits = 0
    net_by_account: Dict[str, int] = defaultdict(int)
    for entry in entries:
        for line in entry.lines:
            total_debits += line.debit_amount
            total_credits += line.credit_amount
            net_by_account[line.account_name] += line.debit_amount - line.credit_amount

    rows: List[TrialBalanceRow] = [
        TrialBalanceRow(
            account_name=name,
            debit_balance=net if net > 0 else 0,
            credit_balance=-net if net < 0 else 0,
        )
        for name, net in sorted(net_by_account.items())
    ]
    return TrialBalance(total_debits=total_debits, total_credits=total_credits, rows=tuple(rows))
