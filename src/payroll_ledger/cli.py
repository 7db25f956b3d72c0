from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from .calculator import PayrollCalculator
from .core.config import get_settings
from .core.logging import configure_logging
from .exceptions import InvalidInputError, PayrollError
from .journal import compute_trial_balance
from .models import EmployeePayRequest, JournalEntry, PayFrequency, ResidencyStatus
from .money import format_money, to_minor_units
from .storage import LedgerStore, parse_period
from .tax_tables import TaxTableRepository
from .wizard import PayrollRunWizard


def repo_from_args(args: argparse.Namespace) -> TaxTableRepository:
    return TaxTableRepository(Path(args.tables_dir) if args.tables_dir else get_settings().tax_table_dir)


def calculator_from_args(args: argparse.Namespace) -> PayrollCalculator:
    version = args.table_version or get_settings().tax_table_version
    return PayrollCalculator.from_repository(repo_from_args(args), version)


def store_from_args(args: argparse.Namespace) -> LedgerStore:
    return LedgerStore(Path(args.ledger) if args.ledger else get_settings().ledger_path)


def request_from_dict(row: dict) -> EmployeePayRequest:
    try:
        return EmployeePayRequest(
            employee_id=str(row["employee_id"]),
            gross_salary=to_minor_units(str(row["gross_salary"])),
            residency=ResidencyStatus(row.get("residency", ResidencyStatus.RESIDENT.value)),
            frequency=PayFrequency(row.get("frequency", PayFrequency.MONTHLY.value)),
            periods_in_month=row.get("periods_in_month"),
        )
    except KeyError as exc:
        raise InvalidInputError(f"Pay run row missing {exc}") from exc
    except ValueError as exc:
        raise InvalidInputError(f"Pay run row {row.get('employee_id')!r}: {exc}") from exc


def load_run_file(path: Path) -> Tuple[str, Optional[date], List[EmployeePayRequest]]:
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidInputError(f"Cannot read pay run file {path}: {exc}") from exc
    period = data.get("period", "")
    parse_period(period)
    try:
        pay_date = date.fromisoformat(data["pay_date"]) if data.get("pay_date") else None
    except ValueError as exc:
        raise InvalidInputError(f"Invalid pay_date in {path}: {exc}") from exc
    return period, pay_date, [request_from_dict(row) for row in data.get("employees", [])]


def format_entry(entry: JournalEntry) -> str:
    rows = []
    for line in entry.lines:
        if line.debit_amount:
            rows.append(f"Dr {line.account_name:<40} {format_money(line.debit_amount):>14}")
        else:
            rows.append(f"   Cr {line.account_name:<37} {'':>14} {format_money(line.credit_amount):>14}")
    rows.append(f"Totals: debits {format_money(entry.total_debits)} credits {format_money(entry.total_credits)}")
    return "\n".join(rows)


def cmd_tables(args: argparse.Namespace) -> int:
    for version in repo_from_args(args).available_versions():
        print(version)
    return 0


def cmd_calculate(args: argparse.Namespace) -> int:
    calculator = calculator_from_args(args)
    gross = to_minor_units(args.gross)
    residency = ResidencyStatus.NON_RESIDENT if args.non_resident else ResidencyStatus.RESIDENT
    frequency = PayFrequency(args.frequency)
    line = calculator.build_payroll_line(gross, residency, frequency, periods_in_month=args.periods_in_month)
    print(f"Gross salary:          {format_money(line.gross_salary)}")
    print(f"Wage income tax:       {format_money(line.tax_withheld)}")
    print(f"Employee contribution: {format_money(line.employee_contribution)}")
    print(f"Employer contribution: {format_money(line.employer_contribution)}")
    print(f"Net pay:               {format_money(line.net_pay)}")
    for warning in calculator.warnings_for(gross, residency, frequency, args.periods_in_month):
        print(f"warning: {warning}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    wizard = PayrollRunWizard(calculator_from_args(args))
    period, pay_date, requests = load_run_file(Path(args.path))
    preview = wizard.preview(requests)

    for employee_id, result in sorted(preview.employees.items()):
        line = result.line
        print(
            f"{employee_id} gross {format_money(line.gross_salary)} tax {format_money(line.tax_withheld)} "
            f"contrib {format_money(line.employee_contribution)} net {format_money(line.net_pay)}"
        )
        for warning in result.warnings:
            print(f"  warning: {warning}")
    for failure in preview.failures:
        print(f"{failure.employee_id} FAILED [{failure.code}] {failure.message}")

    if not preview.employees:
        print("No payable employees in run")
        return 1

    entry = preview.journal_entry(
        wizard.accounts,
        entry_date=pay_date,
        description=f"Payroll for {period}",
    )
    print(format_entry(entry))

    if not args.post:
        return 1 if preview.has_failures else 0
    if preview.has_failures:
        print(f"Not posting: {len(preview.failures)} employee(s) failed")
        return 1
    posted = store_from_args(args).post_and_save(entry, period)
    print(f"Posted {posted.entry_number} for {period}")
    return 0


def cmd_trial_balance(args: argparse.Namespace) -> int:
    store = store_from_args(args)
    balance = compute_trial_balance(store.entries(args.period))
    for row in balance.rows:
        print(f"{row.account_name:<40} {format_money(row.debit_balance):>14} {format_money(row.credit_balance):>14}")
    print(f"Total debits:  {format_money(balance.total_debits)}")
    print(f"Total credits: {format_money(balance.total_credits)}")
    print(f"Balanced: {'yes' if balance.is_balanced else 'no'}")
    return 0 if balance.is_balanced else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Payroll tax, contribution and ledger CLI")
    parser.add_argument("--tables-dir", help="Directory of versioned rate tables")
    parser.add_argument("--table-version", help="Rate table version to use")
    parser.add_argument("--ledger", help="JSON ledger file")
    sub = parser.add_subparsers(dest="command", required=True)

    tables = sub.add_parser("tables", help="List available rate table versions")
    tables.set_defaults(func=cmd_tables)

    calculate = sub.add_parser("calculate", help="Calculate one payroll line")
    calculate.add_argument("gross", help="Gross salary, e.g. 1000.00")
    calculate.add_argument("--non-resident", action="store_true")
    calculate.add_argument(
        "--frequency", choices=[f.value for f in PayFrequency], default=PayFrequency.MONTHLY.value
    )
    calculate.add_argument(
        "--periods-in-month", type=int, help="Actual weekly or biweekly pay periods in this month"
    )
    calculate.set_defaults(func=cmd_calculate)

    run = sub.add_parser("run", help="Preview a pay run file and its journal entry")
    run.add_argument("path")
    run.add_argument("--post", action="store_true", help="Post the entry to the ledger")
    run.set_defaults(func=cmd_run)

    trial = sub.add_parser("trial-balance", help="Trial balance over posted entries")
    trial.add_argument("--period", help="Restrict to one YYYY-MM period")
    trial.set_defaults(func=cmd_trial_balance)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(get_settings().log_level)
    try:
        return args.func(args)
    except PayrollError as exc:
        print(f"error [{exc.code}]: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
