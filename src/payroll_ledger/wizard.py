from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from .calculator import PayrollCalculator
from .core.logging import get_logger
from .exceptions import PayrollError
from .journal import AccountMappingLike, build_payroll_journal_entry
from .models import EmployeePayRequest, EmployeeResult, JournalEntry, RunFailure

logger = get_logger(__name__)


@dataclass
class PayrollRunPreview:
    employees: Dict[str, EmployeeResult] = field(default_factory=dict)
    failures: List[RunFailure] = field(default_factory=list)
    gross_pay: int = 0
    tax_withheld: int = 0
    employee_contributions: int = 0
    employer_contributions: int = 0
    total_net_pay: int = 0

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def journal_entry(
        self,
        account_mapping: AccountMappingLike,
        entry_date: Optional[date] = None,
        description: str = "",
    ) -> JournalEntry:
        return build_payroll_journal_entry(
            [result.line for result in self.employees.values()],
            account_mapping,
            entry_date=entry_date,
            description=description,
        )


class PayrollRunWizard:
    def __init__(self, calculator: PayrollCalculator):
        # A run that cannot be posted must not start.
        self.accounts = calculator.require_accounts()
        self.calculator = calculator

    def preview(self, requests: List[EmployeePayRequest]) -> PayrollRunPreview:
        preview = PayrollRunPreview()

        for request in requests:
            if request.employee_id in preview.employees:
                preview.failures.append(
                    RunFailure(request.employee_id, "DUPLICATE_EMPLOYEE", "Employee appears twice in the pay run")
                )
                continue
            try:
                line = self.calculator.build_payroll_line(
                    request.gross_salary,
                    request.residency,
                    request.frequency,
                    employee_id=request.employee_id,
                    periods_in_month=request.periods_in_month,
                )
            except PayrollError as exc:
                logger.warning("payroll_line_rejected", employee_id=request.employee_id, code=exc.code, error=exc.message)
                preview.failures.append(RunFailure(request.employee_id, exc.code, exc.message))
                continue

            preview.employees[request.employee_id] = EmployeeResult(
                employee_id=request.employee_id,
                line=line,
                residency=request.residency,
                warnings=self.calculator.warnings_for(
                    request.gross_salary, request.residency, request.frequency, request.periods_in_month
                ),
            )
            preview.gross_pay += line.gross_salary
            preview.tax_withheld += line.tax_withheld
            preview.employee_contributions += line.employee_contribution
            preview.employer_contributions += line.employer_contribution
            preview.total_net_pay += line.net_pay

        logger.info(
            "payroll_run_previewed",
            employees=len(preview.employees),
            failures=len(preview.failures),
            gross_pay=preview.gross_pay,
        )
        return preview
